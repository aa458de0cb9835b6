from django.apps import apps
from django.core.management.base import BaseCommand


class Command(BaseCommand):
    help = "Clear cached Subresource Integrity values"

    def handle(self, *args, **options):
        apps.get_app_config("taghelpers").get_integrity_resolver().clear_cache()
        self.stdout.write(self.style.SUCCESS("Integrity cache cleared"))

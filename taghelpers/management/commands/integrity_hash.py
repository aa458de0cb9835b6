from django.apps import apps
from django.core.management.base import BaseCommand, CommandError

from taghelpers.integrity import SriAlgorithm


class Command(BaseCommand):
    help = "Print the Subresource Integrity value of a local asset"

    def add_arguments(self, parser):
        parser.add_argument("path", help="Asset path, e.g. /css/site.css or ~/js/site.js")
        parser.add_argument(
            "--algorithm",
            default=SriAlgorithm.SHA256.value,
            type=str.lower,
            choices=[algorithm.value for algorithm in SriAlgorithm],
        )

    def handle(self, *args, **options):
        resolver = apps.get_app_config("taghelpers").get_integrity_resolver()
        value = resolver.resolve(options["algorithm"], options["path"])
        if not value:
            raise CommandError(f"No local asset found for {options['path']!r}")
        self.stdout.write(value)

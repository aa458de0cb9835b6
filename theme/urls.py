from django.urls import path

from . import views

urlpatterns = [
    path("", views.home, name="home"),
    path("hide-test/", views.hide_test, name="hide-test"),
]

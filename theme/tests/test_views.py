import base64
import hashlib

from django.urls import reverse

from theme import views


def _sri(algorithm, data):
    raw = hashlib.new(algorithm, data).digest()
    return f"{algorithm}-{base64.b64encode(raw).decode('ascii')}"


def test_home_renders_helpers(client, app_asset_root):
    response = client.get(reverse("home"))

    assert response.status_code == 200
    content = response.content.decode()
    css_value = _sri("sha256", b"body{}")
    assert "<strong>Some sample message.</strong>" in content
    assert f'integrity="{css_value}"' in content
    assert f"<code>{css_value}</code>" in content


def test_home_leaves_missing_script_hash_empty(client, app_asset_root):
    # The fixture web root has no js/site.js.
    content = client.get(reverse("home")).content.decode()

    assert 'src="/js/site.js"' in content
    assert "sha384-" not in content


def test_hide_test_strips_wrapper_when_hidden(client, app_asset_root, monkeypatch):
    monkeypatch.setattr(views.random, "random", lambda: 0.9)

    content = client.get(reverse("hide-test")).content.decode()

    assert "<span>Some sample message.</span>" in content
    assert 'class="alert' not in content


def test_hide_test_keeps_wrapper_when_shown(client, app_asset_root, monkeypatch):
    monkeypatch.setattr(views.random, "random", lambda: 0.1)

    content = client.get(reverse("hide-test")).content.decode()

    assert 'role="alert"' in content
    assert "Some sample message." in content


def test_bundled_assets_hash_from_default_root(client):
    content = client.get(reverse("home")).content.decode()
    css_value = _sri("sha256", b"body{}")

    assert f'integrity="{css_value}"' in content


def test_home_links_assets_from_site_root(client, app_asset_root):
    content = client.get(reverse("home")).content.decode()

    assert 'href="/css/site.css"' in content
    assert "~/" not in content

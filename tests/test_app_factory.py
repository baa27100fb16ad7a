"""
test_app_factory.py
Tests the app factory in cutplan/__init__.py for configuration, blueprint registration and error handling.
"""
from flask import Flask

from cutplan import create_app
from cutplan.config import AppConfig


def test_create_app_returns_flask():
    app = create_app()
    assert isinstance(app, Flask), "create_app() should return a Flask app instance"
    assert isinstance(app.config['CUTPLAN'], AppConfig)


def test_blueprints_registered():
    app = create_app()
    assert 'main' in app.blueprints, "'main' blueprint should be registered"
    rules = {rule.rule for rule in app.url_map.iter_rules()}
    assert {'/health', '/parse', '/nest', '/quote', '/export/<fmt>'} <= rules


def test_config_override_from_dict():
    app = create_app({'TESTING': True, 'CUTPLAN': {'sheet': {'width': 3000}}})
    assert app.config['CUTPLAN'].sheet.width == 3000.0
    assert app.config['TESTING']


def test_unhandled_exception_returns_500():
    app = create_app({'TESTING': True})

    @app.route('/boom')
    def boom():
        raise RuntimeError("kaboom")

    resp = app.test_client().get('/boom')
    assert resp.status_code == 500
    assert "kaboom" in resp.get_json()["error"]


def test_upload_size_limit():
    app = create_app({'TESTING': True, 'MAX_CONTENT_LENGTH': 10})
    resp = app.test_client().post('/parse', data="0\nSECTION\n2\nENTITIES\n0\nENDSEC\n", content_type="text/plain")
    assert resp.status_code == 413


def test_non_finite_rotation_in_config_keeps_default():
    app = create_app({'TESTING': True, 'CUTPLAN': {'nesting': {'rotations': [float('inf')]}}})
    assert app.config['CUTPLAN'].nesting.rotations == (0, 90)

# Logging is configured before flask and the blueprints are imported
import logging
from cutplan import config as settings

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler(settings.LOG_FILE, encoding='utf-8')
    ]
)

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException


def create_app(config=None):
    app = Flask(__name__)
    app.config['SECRET_KEY'] = settings.SECRET_KEY
    app.config['MAX_CONTENT_LENGTH'] = settings.MAX_CONTENT_LENGTH
    app.config['CUTPLAN'] = settings.load_config()
    CORS(app)

    if config:
        app.config.update(config)
    if isinstance(app.config['CUTPLAN'], dict):
        app.config['CUTPLAN'] = settings.config_from_dict(app.config['CUTPLAN'])
    logging.info(f"Cutting setup: {app.config['CUTPLAN'].cutting.power} kW, {app.config['CUTPLAN'].cutting.gas}, "
                 f"{app.config['CUTPLAN'].cutting.thickness} mm")

    # Error Handler
    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            return e
        import traceback
        tb = traceback.format_exc()
        logging.error(f"Exception: {e}\nTraceback:\n{tb}")
        return jsonify({"error": f"Exception: {e}"}), 500

    # Register blueprints
    from .routes.main import main_bp
    app.register_blueprint(main_bp)
    # Log all registered routes/methods for diagnostics
    for rule in app.url_map.iter_rules():
        logging.info(f"Registered route: {rule.rule} | methods={rule.methods} | endpoint={rule.endpoint}")

    return app

"""
dvdrip Web Server
"""

from flask import Flask

from . import __version__
from . import activity
from .jobs import JobRunner
from .ripper import RipEngine
from .routes import main


def create_app(cfg: dict, runner: JobRunner = None) -> Flask:
    app = Flask(__name__)

    app.config['RIP_CONFIG'] = cfg
    app.extensions['dvdrip_runner'] = runner or JobRunner(RipEngine(cfg))

    # Register blueprints
    app.register_blueprint(main)

    return app


def run_server(cfg: dict, host: str = None, port: int = None):
    """Start the control surface and block"""
    web = cfg.get('web', {})
    host = host or web.get('host', '0.0.0.0')
    port = port or web.get('port', 8080)

    app = create_app(cfg)
    activity.service_started()

    print(f"""
    dvdrip v{__version__} - Disc Ripping Web Server

    Storage Path: {cfg['paths']['storage']}
    Starting server on http://{host}:{port}
    """)

    # debug=False keeps the reloader from restarting mid-rip
    app.run(host=host, port=port, debug=False, threaded=True)

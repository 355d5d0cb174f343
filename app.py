from typing import Optional

from flask import Flask
from flask_cors import CORS

from kommyutrouting.config import Config
from kommyutrouting.core_route_service import KommyutRouteService
from routing import initialize_route_service, routing_bp


def create_app(service: Optional[KommyutRouteService] = None, config: Optional[Config] = None) -> Flask:
    """Flask app with the routing blueprint; builds the service from the environment when none is given"""
    app = Flask(__name__)
    CORS(app)

    initialize_route_service(service, config)
    app.register_blueprint(routing_bp)
    return app


if __name__ == '__main__':
    config = Config.from_env()
    app = create_app(config=config)
    api = config.get_api_config()
    print(f"\n🚀 Kommyut routing running at: http://{api['host']}:{api['port']}\n")
    app.run(**api)

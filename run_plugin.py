from plugin_serial.api.routes import create_app
from plugin_serial.config import Config

if __name__ == "__main__":
    app = create_app()

    app.run(
        host=Config.HOST,
        port=Config.PORT,
        debug=False,
        threaded=True,
        use_reloader=False,  # IMPORTANT: prevents a second watcher and a second port handle
    )

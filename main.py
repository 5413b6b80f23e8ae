import logging
if __name__=="__main__":
    logging.basicConfig(level=logging.DEBUG,
                        format="%(asctime)s [%(threadName)s] %(levelname)s %(name)s: %(message)s",
                        datefmt="%Y-%m-%d %H:%M:%S")


from flask import Flask

import poller
import settings


def create_app(main_poller:poller.Poller)->Flask:
    app=Flask(__name__)

    @app.route("/")
    def index():
        # returns the poller state as a text/plain response
        response=app.response_class(
            response=str(main_poller),
            status=200,
            mimetype="text/plain"
        )
        return response

    return app




if __name__=="__main__":
    main_poller=poller.from_settings()
    main_poller.start()

    app=create_app(main_poller)
    app.run(host="0.0.0.0",port=settings.STATUS_PORT)

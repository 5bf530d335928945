"""Application instance for Gunicorn (``agora_callables.wsgi:app``)."""
from agora_callables.flask_app import create_app

app = create_app()


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=8080, debug=True)

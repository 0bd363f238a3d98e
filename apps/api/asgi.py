"""ASGI entry point: the Flask WSGI app wrapped for uvicorn.

    uvicorn apps.api.asgi:asgi_app
"""

# flake8: noqa: E501


from asgiref.wsgi import WsgiToAsgi

from apps.api.main import create_app

app = create_app()
asgi_app = WsgiToAsgi(app)

"""Access to the application's PyDAL instance."""

# flake8: noqa: E501


from flask import current_app


def get_db():
    """
    Get the PyDAL DAL bound to the current Flask app.

    Returns:
        DAL instance created by ``shared.database.init_db``
    """
    return current_app.db

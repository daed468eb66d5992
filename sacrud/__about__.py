__version__ = "0.3.0"
__description__ = "sacrud : declarative SQLAlchemy CRUD actions for Flask and FastAPI"

__version__ = "0.1.0"
__description__ = "restmodel : model-driven JSON:API resources for FastAPI"

from app.listens.router import router

__all__ = ["router"]

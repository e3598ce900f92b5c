from app.push.router import router

__all__ = ["router"]

from app.stats.router import router

__all__ = ["router"]

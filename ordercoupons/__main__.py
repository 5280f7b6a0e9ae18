import uvicorn
from ordercoupons.core.config import settings

def main():
    uvicorn.run(
        "ordercoupons.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower()
    )

if __name__ == "__main__":
    main()

import uvicorn

from prtracker.config import settings


def main():
    uvicorn.run(
        "prtracker.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.APP_ENV == "development",
    )


if __name__ == "__main__":
    main()

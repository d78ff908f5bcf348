import uvicorn

from drama_api.core.config import settings


def main() -> None:
    uvicorn.run("drama_api.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()

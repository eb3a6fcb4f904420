"""
Service entry point.
Run: uvicorn autotune.main:app --host 0.0.0.0 --port 8000
"""

from autotune.api.app import create_app

app = create_app()


def run() -> None:
    """Console script: serve the API with settings from AUTOTUNE_* variables."""
    import uvicorn

    from autotune.config.settings import RuntimeSettings

    settings = RuntimeSettings()
    uvicorn.run("autotune.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()

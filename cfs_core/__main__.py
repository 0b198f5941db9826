from cfs_core.main import create_app  # pragma: no cover

# Allows `python -m cfs_core` to run uvicorn programmatically if desired.
if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    from cfs_core.core.config import get_settings
    from cfs_core.core.database import create_schema

    if get_settings().database_url.startswith("sqlite"):
        create_schema()
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)

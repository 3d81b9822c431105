"""Run the API with ``python -m gymgrub``."""

import uvicorn

from gymgrub.config import settings

if __name__ == "__main__":
    uvicorn.run("gymgrub.main:app", host=settings.host, port=settings.port, reload=settings.debug)

import uvicorn

from kardexcare.config import settings
from kardexcare.main import create_app

app = create_app(settings)

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=settings.port, reload=False)

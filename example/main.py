"""
Ponto de entrada da aplicação de exemplo.

Execute com:
    python -m example.main

Ou com uvicorn:
    uvicorn example.app:app --reload
"""

import uvicorn

from example.settings import settings


def main() -> None:
    uvicorn.run(
        "example.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
    )


if __name__ == "__main__":
    main()

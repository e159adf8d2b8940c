import logging
import os

import uvicorn


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    uvicorn.run(
        "leadgen.main:create_app",
        factory=True,
        host=os.getenv("LEADGEN_HOST", "127.0.0.1"),
        port=int(os.getenv("LEADGEN_PORT", "8000")),
        reload=os.getenv("LEADGEN_RELOAD", "").lower() in ("1", "true", "yes"),
    )


if __name__ == "__main__":
    main()

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "ledger.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "5477")),
    )


if __name__ == "__main__":
    main()

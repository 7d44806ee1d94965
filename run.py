"""Local development entry point.

Usage:
    python run.py

Loads .env first so DATABASE_URL / SECRET_KEY / JWT_SECRET are picked up.
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env before anything else

from tracker import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=3001)

from app.main import app
import os

if __name__ == "__main__":
    # Importing app.main prepares the data directory and the query archive.
    # Each request drives its own browser sessions, so the threaded dev server
    # can serve concurrent lookups.
    port = int(os.environ.get("PORT", 8080))
    app.run(host="0.0.0.0", port=port, threaded=True)

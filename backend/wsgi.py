# backend/wsgi.py
import atexit

from pharmacy import create_app
from pharmacy.extensions import dispose_store

app = create_app()

# Release pooled connections once the server process exits
atexit.register(dispose_store, app)

if __name__ == "__main__":
    app.run(host="0.0.0.0", port=3000)

"""
Development server.
"""
import os

from app import create_app

app = create_app()

if __name__ == "__main__":
    print("Starting dashboard on port 5000...")
    app.run(
        host='0.0.0.0',
        port=int(os.getenv("PORT", "5000")),
        debug=os.getenv("FLASK_DEBUG", "0") == "1",
        use_reloader=True
    )

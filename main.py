"""
Perception Backend Entry Point

Run with: uvicorn main:app --reload --port 8000
Or: python main.py
"""

from perception_backend.main import app

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("perception_backend.main:app", host="0.0.0.0", port=8000, reload=True)

from dotenv import load_dotenv
import uvicorn
import os

load_dotenv()

if __name__ == "__main__":
    # Disable reload in production
    reload = os.getenv("ENVIRONMENT") != "production" and os.getenv("VERCEL") != "1"

    uvicorn.run(
        "study_planner.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=reload,
        timeout_keep_alive=300,  # Plan generation can take minutes
        timeout_graceful_shutdown=30
    )

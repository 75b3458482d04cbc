import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "settings.server:org_app",
        host="0.0.0.0",
        port=7071,
        timeout_keep_alive=75,
        timeout_graceful_shutdown=30,
        reload=False
    )

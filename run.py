import os
import uvicorn


if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    log_level = os.getenv("LOG_LEVEL", "info").lower()

    # WebSocket/proxy tuning via env vars
    proxy_headers = (os.getenv("PROXY_HEADERS", "true").lower() in ("1", "true", "yes", "on"))
    forwarded_allow_ips = os.getenv("FORWARDED_ALLOW_IPS", "*")
    try:
        ws_ping_interval = int(os.getenv("WS_PING_INTERVAL", "20"))
    except ValueError:
        ws_ping_interval = 20
    try:
        ws_ping_timeout = int(os.getenv("WS_PING_TIMEOUT", "20"))
    except ValueError:
        ws_ping_timeout = 20

    # One worker only: the active draw lives in process memory.
    uvicorn.run(
        "app.main:app",
        host=host,
        port=port,
        reload=False,
        workers=1,
        log_level=log_level,
        proxy_headers=proxy_headers,
        forwarded_allow_ips=forwarded_allow_ips,
        ws_ping_interval=ws_ping_interval,
        ws_ping_timeout=ws_ping_timeout,
    )

# run_dev.py
import uvicorn

from hello_chatbot.settings import settings

if __name__ == "__main__":
    reload = settings.debug_mode if settings.dev_server_reload is None else settings.dev_server_reload
    uvicorn.run(
        "hello_chatbot.main:app",
        host=settings.dev_server_host,
        port=settings.dev_server_port,
        log_level=settings.effective_log_level.lower(),
        reload=reload
    )

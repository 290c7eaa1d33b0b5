"""Wrapper script for running the relay without the CLI (e.g. under a profiler)."""

if __name__ == "__main__":
    import uvicorn

    from event_relay.settings import app_settings
    from event_relay.uvicorn_filters import build_log_config

    uvicorn.run(
        "event_relay:application",
        factory=True,
        host=app_settings.HOST,
        port=app_settings.PORT,
        log_config=build_log_config(),
    )

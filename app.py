import os
import logging
import streamlit as st

# --- OTel & Observability Imports ---
from opentelemetry import trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource

# --- OTel Logging Imports ---
from opentelemetry.sdk._logs import LoggerProvider, LoggingHandler
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter

# --- Prometheus Import ---
from prometheus_client import start_http_server

# --- Application Imports ---
from src.config import GameConfig
from src.heart.adapters.db_manager import DatabaseManager
from src.heart.adapters.heart_api import HeartApiPuzzleSource
from src.heart.adapters.sqlite_auth import LocalIdentityProvider
from src.heart.adapters.sqlite_store import SQLiteScoreStore
from src.heart.application.accounts import AccountService
from src.heart.presentation.state_provider import IStateProvider, StreamlitStateProvider
from src.heart.presentation.viewmodel import (
    SCREEN_AUTH,
    SCREEN_DASHBOARD,
    SCREEN_GAME,
    GameViewModel,
)
from src.heart.presentation.views import auth_view, components, dashboard_view, game_view


# --- 1. Configure Observability ---
def configure_observability():
    """
    Configures OpenTelemetry to send Traces and Logs via OTLP.
    Starts a background Prometheus server for Metrics.
    """
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    headers = os.getenv("OTEL_EXPORTER_OTLP_HEADERS")

    if not endpoint or not headers:
        print("⚠️ Observability Warning: OTEL env vars not set. Telemetry will not be sent to Cloud.")
        return

    resource = Resource.create({"service.name": "heart-quiz-app"})

    # --- A. TRACING SETUP ---
    trace_provider = TracerProvider(resource=resource)
    otlp_trace_exporter = OTLPSpanExporter(endpoint=endpoint, headers=headers)
    trace_provider.add_span_processor(BatchSpanProcessor(otlp_trace_exporter))
    trace.set_tracer_provider(trace_provider)

    # --- B. LOGGING SETUP ---
    logger_provider = LoggerProvider(resource=resource)
    otlp_log_exporter = OTLPLogExporter(endpoint=endpoint, headers=headers)
    logger_provider.add_log_record_processor(BatchLogRecordProcessor(otlp_log_exporter))
    set_logger_provider(logger_provider)

    # Attach OTel Handler to Python's Root Logger
    handler = LoggingHandler(level=logging.INFO, logger_provider=logger_provider)
    logging.getLogger().addHandler(handler)

    # --- C. METRICS SETUP (Prometheus) ---
    try:
        start_http_server(8000)
        print("✅ Prometheus Metrics server started on port 8000")
    except OSError:
        print("⚠️ Prometheus port 8000 already in use (likely Streamlit reload). Skipping.")


# --- 2. Bootstrap Application ---

# Initialize Observability ONCE per session
if "observability_configured" not in st.session_state:
    logging.basicConfig(level=logging.INFO, format='%(asctime)s [%(levelname)s] %(message)s')

    configure_observability()
    st.session_state.observability_configured = True


# --- 3. Dependency Injection (Composition Root) ---
@st.cache_resource
def get_database() -> DatabaseManager:
    return DatabaseManager(GameConfig.DB_PATH)


@st.cache_resource
def get_puzzle_source() -> HeartApiPuzzleSource:
    return HeartApiPuzzleSource()


def build_view_model(state_provider: IStateProvider) -> GameViewModel:
    # Auth state is per browser session, so identity-bearing clients live there too
    bundle = state_provider.get("backend")
    if bundle is None:
        if GameConfig.USE_SQLITE:
            db = get_database()
            identity_provider = LocalIdentityProvider(db)
            score_store = SQLiteScoreStore(db)
        else:
            from src.heart.adapters.supabase_auth import (
                SupabaseIdentityProvider,
                build_client,
            )
            from src.heart.adapters.supabase_store import SupabaseScoreStore

            client = build_client(GameConfig.SUPABASE_URL or "", GameConfig.SUPABASE_KEY or "")
            identity_provider = SupabaseIdentityProvider(client)
            score_store = SupabaseScoreStore(client)
        bundle = (AccountService(identity_provider, score_store), score_store)
        state_provider.set("backend", bundle)

    accounts, score_store = bundle
    return GameViewModel(accounts, get_puzzle_source(), score_store, state_provider)


def main():
    st.set_page_config(page_title=GameConfig.APP_TITLE, page_icon="❤️", layout="centered")
    components.apply_styles()

    state_provider = StreamlitStateProvider()
    vm = build_view_model(state_provider)

    components.render_messages(vm.pop_messages())

    # --- 4. Main Router ---
    screen = vm.screen

    if screen == SCREEN_AUTH:
        auth_view.render(vm)
    elif screen == SCREEN_DASHBOARD:
        dashboard_view.render(vm)
    elif screen == SCREEN_GAME:
        game_view.render(vm)


if __name__ == "__main__":
    main()

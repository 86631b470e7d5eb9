from collections.abc import Callable
from datetime import datetime
import logging

from naricare.core.config import settings
from naricare.application.ports.availability import AvailabilityProviderPort
from naricare.application.ports.consultation_store import ConsultationStorePort
from naricare.application.use_cases.booking import BookConsultationUseCase
from naricare.application.use_cases.join_consultation import JoinConsultationUseCase
from naricare.application.use_cases.list_consultations import ListConsultationsUseCase
from naricare.application.use_cases.manage_consultation import ConsultationLifecycleUseCase
from naricare.application.utils.clock import utc_now
from naricare.infrastructure.availability.mock_availability import MockAvailabilityProvider
from naricare.infrastructure.backend.api_client import BackendApiClient
from naricare.infrastructure.store.memory_store import MemoryConsultationStore


_backend_client: BackendApiClient | None = None
_memory_store: MemoryConsultationStore | None = None
_mock_availability: MockAvailabilityProvider | None = None
_lifecycle: ConsultationLifecycleUseCase | None = None


def _use_backend() -> bool:
    return bool(settings.BACKEND_BASE_URL) and settings.ENV.lower() not in {"dev", "local"}


def get_backend_client() -> BackendApiClient:
    global _backend_client
    if _backend_client is None:
        _backend_client = BackendApiClient()
    return _backend_client


def get_consultation_store() -> ConsultationStorePort:
    global _memory_store
    if _use_backend():
        return get_backend_client()
    if _memory_store is None:
        logging.getLogger(__name__).info("Using MemoryConsultationStore (ENV=%s)", settings.ENV)
        _memory_store = MemoryConsultationStore(meeting_base_url=settings.MEETING_BASE_URL)
    return _memory_store


def get_availability_provider() -> AvailabilityProviderPort:
    global _mock_availability
    if _use_backend():
        return get_backend_client()
    if _mock_availability is None:
        _mock_availability = MockAvailabilityProvider()
    return _mock_availability


def get_clock() -> Callable[[], datetime]:
    return utc_now


def get_lifecycle_use_case() -> ConsultationLifecycleUseCase:
    # shared so per-consultation transition locks are shared
    global _lifecycle
    if _lifecycle is None:
        _lifecycle = ConsultationLifecycleUseCase(store=get_consultation_store())
    return _lifecycle


def get_list_consultations_use_case() -> ListConsultationsUseCase:
    return ListConsultationsUseCase(store=get_consultation_store())


def get_join_consultation_use_case() -> JoinConsultationUseCase:
    return JoinConsultationUseCase(lifecycle=get_lifecycle_use_case())


def get_booking_use_case() -> BookConsultationUseCase:
    return BookConsultationUseCase(
        store=get_consultation_store(),
        availability=get_availability_provider(),
        slot_minutes=settings.SLOT_DURATION_MINUTES,
    )

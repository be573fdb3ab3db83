import pytest

from text_sectioner.core.models import SectionNode
from text_sectioner.core.services.section_editing_service import SectionEditingService


@pytest.fixture
def service():
    return SectionEditingService()


@pytest.fixture
def loaded_service(service):
    """Install the given roots and return the service for chaining."""
    def loader(*roots: SectionNode) -> SectionEditingService:
        service.replace_forest(list(roots))
        return service
    return loader


@pytest.fixture
def root_texts():
    """Own text runs of every root of a service, in order."""
    def collect(svc: SectionEditingService):
        return [root.text_runs() for root in svc.roots]
    return collect

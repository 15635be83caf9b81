"""Shared fixtures for metadata repository tests."""

import pytest

from metadata_repo.config import RepositoryConfig
from metadata_repo.domains.serializer import DomainParser, read_source
from metadata_repo.domains.types import Domain, LocalizedString, LogicalModel, PhysicalModel
from metadata_repo.errors import DomainParseError, RepositoryError
from metadata_repo.repository import MetadataDomainRepository
from metadata_repo.storage import InMemoryRepository


SAMPLE_DOMAIN_ID = "sample"
STEEL_WHEELS = "steel-wheels"

DEFAULT_DESCRIPTION = "This model contains information about Employees."
ES_DESCRIPTION = "Este modelo contiene la información sobre empleados."
DESCRIPTION_KEY = "[LogicalModel-BV_HUMAN_RESOURCES].[description]"


class LineDomainParser(DomainParser):
    """
    Minimal parser: the domain ID on the first line, one logical model ID
    per following line. A domain with the ID "exception" blows up.
    """

    def generate(self, domain):
        if domain.id == "exception":
            raise AttributeError("'NoneType' object has no attribute 'id'")
        lines = [domain.id] + [model.id for model in domain.logical_models]
        return "\n".join(lines)

    def parse(self, source):
        lines = read_source(source).decode("utf-8").splitlines()
        if not lines:
            raise DomainParseError("Empty document")
        domain = Domain(id=lines[0])
        for model_id in lines[1:]:
            domain.add_logical_model(model_id)
        return domain


class FlakyRepository(InMemoryRepository):
    """In-memory store whose tagging and deletes can be switched to fail."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_metadata = False
        self.fail_delete = False

    def set_file_metadata(self, file_id, metadata):
        if self.fail_metadata:
            raise RepositoryError(f"Metadata store unavailable for {file_id}")
        super().set_file_metadata(file_id, metadata)

    def delete_file(self, file):
        if self.fail_delete:
            raise RepositoryError(f"Unable to delete {file.path}")
        super().delete_file(file)


def make_steel_wheels(domain_id: str = STEEL_WHEELS) -> Domain:
    """A domain with two logical models and embedded en_US/es strings."""
    return Domain(
        id=domain_id,
        locales=["en_US", "es"],
        description=LocalizedString(values={"en_US": "Steel Wheels sample data"}),
        physical_models=[
            PhysicalModel(id="SampleData", name="Sample Data", tables=["CUSTOMERS", "ORDERS"]),
            PhysicalModel(id="HumanResources", name="HR", tables=["EMPLOYEES", "OFFICES"]),
        ],
        logical_models=[
            LogicalModel(
                id="BV_ORDERS",
                name=LocalizedString(values={"en_US": "Orders", "es": "Pedidos"}),
                description=LocalizedString(values={"en_US": "This model contains information about Orders."}),
                physical_model_id="SampleData",
            ),
            LogicalModel(
                id="BV_HUMAN_RESOURCES",
                name=LocalizedString(values={"en_US": "Human Resources", "es": "Recursos Humanos"}),
                description=LocalizedString(values={"en_US": DEFAULT_DESCRIPTION, "es": ES_DESCRIPTION}),
                physical_model_id="HumanResources",
            ),
        ],
    )


# =============================================================================
# Repository Fixtures
# =============================================================================

@pytest.fixture
def store() -> InMemoryRepository:
    """Empty in-memory hierarchical store."""
    return InMemoryRepository()


@pytest.fixture
def line_parser() -> LineDomainParser:
    return LineDomainParser()


@pytest.fixture
def domain_repository(store, line_parser) -> MetadataDomainRepository:
    """Domain repository using the line parser."""
    store.get_folder(RepositoryConfig().metadata_folder, create=True)
    return MetadataDomainRepository(store, parser=line_parser)


@pytest.fixture
def yaml_repository(store) -> MetadataDomainRepository:
    """Domain repository using the default YAML parser."""
    return MetadataDomainRepository(store)


@pytest.fixture
def steel_wheels() -> Domain:
    return make_steel_wheels()


def child_count(repository: MetadataDomainRepository) -> int:
    """Number of files in the metadata folder."""
    return len(repository.repository.get_children(repository.get_metadata_dir()))


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "localization: locale fallback and localization file tests")
    config.addinivalue_line("markers", "storage: hierarchical store backend tests")

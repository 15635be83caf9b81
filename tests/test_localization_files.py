"""Tests for localization files stored alongside domains."""

import io

import pytest

from conftest import (
    DEFAULT_DESCRIPTION,
    DESCRIPTION_KEY,
    ES_DESCRIPTION,
    STEEL_WHEELS,
    child_count,
    make_steel_wheels,
)
from metadata_repo.domains.types import Domain
from metadata_repo.errors import DomainStorageException, InvalidArgument
from metadata_repo.repository import FILE_TYPE_LOCALE, PROPERTY_FILE_TYPE, PROPERTY_LOCALE

EMPTY_PROPERTIES = {}


def empty_stream():
    return io.BytesIO(b"")


pytestmark = pytest.mark.localization


class TestAddLocalizationFileArguments:
    @pytest.mark.parametrize("domain_id", [None, ""])
    @pytest.mark.parametrize("make_properties", [lambda: EMPTY_PROPERTIES, empty_stream])
    def test_missing_domain_id(self, domain_repository, domain_id, make_properties):
        with pytest.raises(InvalidArgument):
            domain_repository.add_localization_file(domain_id, "en", make_properties())

    @pytest.mark.parametrize("locale", ["valid", "english", "e", "x-private", "en.US", "en/US", "../x"])
    def test_any_locale_code_is_accepted(self, domain_repository, store, locale):
        domain_repository.add_localization_file("valid", locale, EMPTY_PROPERTIES)

        children = store.get_children(domain_repository.get_metadata_dir())
        assert len(children) == 1
        assert children[0].path.startswith("/etc/metadata/valid.")
        assert store.get_file_metadata(children[0].id)[PROPERTY_LOCALE] == locale
        assert domain_repository.get_localization_files("valid") == {locale: {}}

    @pytest.mark.parametrize("domain_id", [None, "", "valid"])
    @pytest.mark.parametrize("locale", [None, "", "valid"])
    def test_null_properties_is_noop(self, domain_repository, domain_id, locale):
        domain_repository.add_localization_file(domain_id, locale, None)
        assert child_count(domain_repository) == 0

    def test_invalid_bundle(self, domain_repository):
        with pytest.raises(DomainStorageException):
            domain_repository.add_localization_file("valid", "en", b"- not\n- a mapping\n")
        assert child_count(domain_repository) == 0


class TestLocalizationFileStorage:
    def test_default_locale_file(self, domain_repository, store):
        domain_repository.add_localization_file("valid", None, {"k": "v"})
        domain_repository.add_localization_file("valid", "", {"k": "v2"})

        assert child_count(domain_repository) == 1
        assert domain_repository.get_localization_files("valid") == {"": {"k": "v2"}}

        file = store.get_file("/etc/metadata/valid.default.properties")
        metadata = store.get_file_metadata(file.id)
        assert metadata[PROPERTY_LOCALE] == ""
        assert metadata[PROPERTY_FILE_TYPE] == FILE_TYPE_LOCALE

    def test_stream_and_mapping_inputs(self, domain_repository):
        domain_repository.add_localization_file("valid", "fr", io.BytesIO("k: été\n".encode("utf-8")))
        domain_repository.add_localization_file("valid", "de", {"k": "Sommer"})
        domain_repository.add_localization_file("valid", "it", "k: estate\n")

        assert domain_repository.get_localization_files("valid") == {
            "fr": {"k": "été"},
            "de": {"k": "Sommer"},
            "it": {"k": "estate"},
        }

    def test_locale_codes_are_exact(self, domain_repository):
        domain_repository.add_localization_file("valid", "en-US", {"k": "dash"})
        domain_repository.add_localization_file("valid", "en_US", {"k": "underscore"})

        assert child_count(domain_repository) == 2
        assert domain_repository.get_localization_files("valid") == {
            "en-US": {"k": "dash"},
            "en_US": {"k": "underscore"},
        }

    def test_literal_default_code_is_not_the_default_file(self, domain_repository):
        domain_repository.add_localization_file("valid", "default", {"k": "named"})
        domain_repository.add_localization_file("valid", None, {"k": "unnamed"})

        assert domain_repository.get_localization_files("valid") == {
            "default": {"k": "named"},
            "": {"k": "unnamed"},
        }

    def test_escaped_codes_survive_reload(self, domain_repository, store):
        domain_repository.add_localization_file("valid", "en.US", {"k": "v"})
        file = store.get_children(domain_repository.get_metadata_dir())[0]
        store.set_file_metadata(file.id, {})

        domain_repository.reload_domains()
        assert domain_repository.get_localization_files("valid") == {"en.US": {"k": "v"}}

    def test_identical_rewrite_keeps_file_count(self, domain_repository):
        domain_repository.store_domain(Domain(id=STEEL_WHEELS), False)
        domain_repository.add_localization_file(STEEL_WHEELS, "ru", {DESCRIPTION_KEY: "x"})
        count = child_count(domain_repository)

        domain_repository.add_localization_file(STEEL_WHEELS, "ru", {DESCRIPTION_KEY: "x"})
        assert child_count(domain_repository) == count

    def test_rewrite_replaces_whole_bundle(self, domain_repository):
        domain_repository.add_localization_file("valid", "ru", {"a": "1", "b": "2"})
        domain_repository.add_localization_file("valid", "ru", {"b": "3"})

        assert domain_repository.get_localization_files("valid") == {"ru": {"b": "3"}}

    def test_prefix_domains_keep_separate_files(self, domain_repository):
        domain_repository.add_localization_file(STEEL_WHEELS + "_test", "en", {"k": "test"})
        domain_repository.add_localization_file(STEEL_WHEELS, "en", {"k": "sw"})

        assert domain_repository.get_localization_files(STEEL_WHEELS) == {"en": {"k": "sw"}}
        assert domain_repository.get_localization_files(STEEL_WHEELS + "_test") == {"en": {"k": "test"}}


class TestLocalizedDomains:
    """Localization files are merged into domains on load."""

    @pytest.fixture
    def repo(self, yaml_repository):
        # A domain whose name starts with "steel-wheels" to try to confuse the lookups
        yaml_repository.store_domain(make_steel_wheels(STEEL_WHEELS + "_test"), False)
        yaml_repository.add_localization_file(STEEL_WHEELS + "_test", "en", {DESCRIPTION_KEY: "wrong"})
        return yaml_repository

    def _hr_model(self, repo):
        domain = repo.get_domain(STEEL_WHEELS)
        assert domain is not None
        assert domain.id == STEEL_WHEELS
        return domain.find_logical_model("BV_HUMAN_RESOURCES")

    def test_locale_fallback(self, repo, steel_wheels):
        file_count = child_count(repo)
        test_description = "test description"
        new_test_description = "new " + test_description

        repo.store_domain(steel_wheels, True)
        file_count += 1
        assert child_count(repo) == file_count

        hr = self._hr_model(repo)
        assert hr.get_description("es") == ES_DESCRIPTION
        for locale in ("en_US", "en", "ru", "pl"):
            assert hr.get_description(locale) == DEFAULT_DESCRIPTION

        repo.add_localization_file(STEEL_WHEELS, "ru", {DESCRIPTION_KEY: test_description})
        file_count += 1
        assert child_count(repo) == file_count
        repo.add_localization_file(STEEL_WHEELS, "pl", {DESCRIPTION_KEY: test_description})
        file_count += 1
        assert child_count(repo) == file_count

        hr = self._hr_model(repo)
        assert hr.get_description("es") == ES_DESCRIPTION
        assert hr.get_description("en_US") == DEFAULT_DESCRIPTION
        assert hr.get_description("en") == DEFAULT_DESCRIPTION
        assert hr.get_description("ru") == test_description
        assert hr.get_description("pl") == test_description

        repo.add_localization_file(STEEL_WHEELS, "ru", {DESCRIPTION_KEY: new_test_description})
        assert child_count(repo) == file_count

        hr = self._hr_model(repo)
        assert hr.get_description("ru") == new_test_description
        assert hr.get_description("pl") == test_description
        assert hr.get_description("en") == DEFAULT_DESCRIPTION

        # An en_US file also answers plain "en" lookups
        repo.add_localization_file(STEEL_WHEELS, "en_US", {DESCRIPTION_KEY: new_test_description})
        file_count += 1
        assert child_count(repo) == file_count

        hr = self._hr_model(repo)
        assert hr.get_description("es") == ES_DESCRIPTION
        assert hr.get_description("en_US") == new_test_description
        assert hr.get_description("en") == new_test_description
        assert hr.get_description("ru") == new_test_description
        assert hr.get_description("pl") == test_description

    def test_dedicated_language_file_wins_over_variant(self, repo, steel_wheels):
        repo.store_domain(steel_wheels, True)
        repo.add_localization_file(STEEL_WHEELS, "en_US", {DESCRIPTION_KEY: "american"})
        repo.add_localization_file(STEEL_WHEELS, "en", {DESCRIPTION_KEY: "english"})

        hr = self._hr_model(repo)
        assert hr.get_description("en") == "english"
        assert hr.get_description("en_US") == "american"
        assert hr.get_description("en_GB") == "english"

    def test_default_file_beats_embedded_values(self, repo, steel_wheels):
        repo.store_domain(steel_wheels, True)
        repo.add_localization_file(STEEL_WHEELS, None, {DESCRIPTION_KEY: "default file"})

        hr = self._hr_model(repo)
        assert hr.get_description("es") == "default file"
        assert hr.get_description("ru") == "default file"

    def test_files_without_key_do_not_override(self, repo, steel_wheels):
        repo.store_domain(steel_wheels, True)
        repo.add_localization_file(STEEL_WHEELS, "es", {"[LogicalModel-BV_ORDERS].[description]": "Pedidos"})

        domain = repo.get_domain(STEEL_WHEELS)
        assert domain.find_logical_model("BV_HUMAN_RESOURCES").get_description("es") == ES_DESCRIPTION
        assert domain.find_logical_model("BV_ORDERS").get_description("es") == "Pedidos"

    def test_stored_document_has_no_overrides(self, repo, steel_wheels, store):
        repo.store_domain(steel_wheels, True)
        repo.add_localization_file(STEEL_WHEELS, "ru", {DESCRIPTION_KEY: "rus description"})

        # Re-storing a merged domain must not bake the overrides in
        repo.remove_model(STEEL_WHEELS, "BV_ORDERS")
        file = store.get_file(repo.compute_domain_filename(STEEL_WHEELS))
        assert b"rus description" not in store.get_content(file)

        assert self._hr_model(repo).get_description("ru") == "rus description"

    def test_add_localization_invalidates_cache(self, repo, steel_wheels):
        repo.store_domain(steel_wheels, True)
        repo.get_domain(STEEL_WHEELS)
        assert STEEL_WHEELS in repo.cache

        repo.add_localization_file(STEEL_WHEELS, "ru", {DESCRIPTION_KEY: "rus description"})

        assert STEEL_WHEELS not in repo.cache
        assert self._hr_model(repo).get_description("ru") == "rus description"

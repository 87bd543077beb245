import os
import pytest
from conftest import SOLR, FakeHttpClient, RecordingSchemaGenerator, cores_status, read, showconfig, solr_index
from pipelines.solr_cores import orchestrator
from pipelines.solr_cores.errors import (CopyFailed, CoreAlreadyExists, RegistrationFailed, SchemaSourceMissing,
                                         TemplateNotFound)
from pipelines.solr_cores.models import CoreState
from pipelines.solr_cores.orchestrator import CoreProvisioner, CreateSolrCores
from pipelines.solr_cores.settings import ProvisionerSettings
from pipelines.solr_cores.transport import LocalFileSystem
from pipelines.solr_cores.xml_merge import XML_DECLARATION, parse


def _run(http, generator, config):
    return CoreProvisioner(LocalFileSystem(), http, generator).run(config)


def test_master_index_end_to_end(template_core, http, generator):
    cores = _run(http, generator, showconfig(solr_index("sitecore_master_index")))

    dest = os.path.join(os.path.dirname(template_core), "sitecore_master_index")
    assert [(c.core_name, c.path, c.state) for c in cores] == [("sitecore_master_index", dest, CoreState.REGISTERED)]
    assert not os.path.exists(os.path.join(dest, "core.properties"))
    assert "_content" in read(dest, "conf", "schema.xml")

    cfg = read(dest, "conf", "solrconfig.xml")
    assert cfg.startswith(XML_DECLARATION)
    select = parse(cfg).find("requestHandler[@name='/select']")
    assert select.find("bool[@name='terms']").text == "true"

    assert http.calls == [
        (SOLR + "/admin/cores", {"wt": "xml"}),
        (SOLR + "/admin/cores", {"action": "CREATE", "name": "sitecore_master_index", "instanceDir": dest,
                                 "config": "solrconfig.xml", "schema": "schema.xml", "dataDir": "data"}),
    ]


def test_each_index_gets_its_own_core(template_core, http, generator):
    indexes = "".join(solr_index(i) for i in ("sitecore_core_index", "sitecore_master_index", "sitecore_web_index"))
    cores = _run(http, generator, showconfig(indexes))
    paths = [c.path for c in cores]
    assert len(set(paths)) == 3
    for p in paths:
        assert os.path.isfile(os.path.join(p, "conf", "schema.xml"))
        assert "<str>terms</str>" in read(p, "conf", "solrconfig.xml")
        assert not os.path.exists(os.path.join(p, "core.properties"))
    assert [p["name"] for p in http.creates] == ["sitecore_core_index", "sitecore_master_index", "sitecore_web_index"]
    # template still usable as a template
    assert os.path.exists(os.path.join(template_core, "core.properties"))
    assert not os.path.exists(os.path.join(template_core, "conf", "schema.xml"))


def test_template_missing_before_any_copy(template_core, generator):
    http = FakeHttpClient(cores_status("/somewhere/else", name="other"))
    with pytest.raises(TemplateNotFound):
        _run(http, generator, showconfig(solr_index("web")))
    assert sorted(os.listdir(os.path.dirname(template_core))) == ["collection1"]
    assert http.creates == []


def test_no_schema_means_no_registration(template_core, http, generator):
    os.remove(os.path.join(template_core, "conf", "managed-schema"))
    with pytest.raises(SchemaSourceMissing):
        _run(http, generator, showconfig(solr_index("web")))
    assert http.creates == []
    assert generator.calls == []


def test_failure_stops_remaining_indexes(template_core, http, generator):
    os.makedirs(os.path.join(os.path.dirname(template_core), "second"))
    indexes = "".join(solr_index(i) for i in ("first", "second", "third"))
    with pytest.raises(CoreAlreadyExists):
        _run(http, generator, showconfig(indexes))
    assert [p["name"] for p in http.creates] == ["first"]
    assert not os.path.exists(os.path.join(os.path.dirname(template_core), "third"))


def test_registration_failure_propagates(template_core, generator):
    http = FakeHttpClient(cores_status(template_core), fail_create=400)
    with pytest.raises(RegistrationFailed):
        _run(http, generator, showconfig(solr_index("web")))


def test_no_solr_indexes_makes_no_calls(generator):
    http = FakeHttpClient()
    assert _run(http, generator, showconfig()) == []
    assert http.calls == []


class _Instance:
    def __init__(self, web_root, config):
        self.web_root_path = web_root
        self.config = config

    def get_showconfig(self):
        return self.config


def test_step_uses_settings_and_injected_generator(template_core, http, tmp_path):
    gen = RecordingSchemaGenerator()
    step = CreateSolrCores(ProvisionerSettings(), fs=LocalFileSystem(), http=http, schema_generator=gen)
    cores = step.execute(_Instance(str(tmp_path / "Website"), showconfig(solr_index("web"))), module="Sitecore 9.0")
    assert [c.core_name for c in cores] == ["web"]
    assert len(gen.calls) == 1


def test_main_requires_inputs(monkeypatch):
    monkeypatch.delenv("SHOWCONFIG_PATH", raising=False)
    monkeypatch.delenv("WEB_ROOT", raising=False)
    assert orchestrator.main() == 2


def test_main_reports_failure(monkeypatch, tmp_path):
    cfg = tmp_path / "showconfig.xml"
    cfg.write_text("<sitecore><settings/></sitecore>")
    monkeypatch.setenv("SHOWCONFIG_PATH", str(cfg))
    monkeypatch.setenv("WEB_ROOT", str(tmp_path))
    assert orchestrator.main() == 1


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("SOLR_TIMEOUT_SEC", "5")
    monkeypatch.setenv("SOLR_EXISTING_CORE", "Overwrite")
    monkeypatch.setenv("SCHEMA_GENERATOR_CLASS", "SolrSchemaBuilder")
    s = ProvisionerSettings.from_env()
    assert s.timeout_sec == 5
    assert s.existing_core.value == "overwrite"
    assert s.schema_class == "SolrSchemaBuilder"
    assert s.wait_sec == 0


def test_template_not_visible_on_this_host(tmp_path, generator):
    remote = str(tmp_path / "remote" / "collection1")
    http = FakeHttpClient(cores_status(remote))
    with pytest.raises(CopyFailed) as ei:
        _run(http, generator, showconfig(solr_index("web")))
    assert remote in str(ei.value) and "'web'" in str(ei.value)
    assert http.creates == []


def test_main_reports_unreadable_showconfig(monkeypatch, tmp_path):
    monkeypatch.setenv("SHOWCONFIG_PATH", str(tmp_path / "missing.xml"))
    monkeypatch.setenv("WEB_ROOT", str(tmp_path))
    assert orchestrator.main() == 1

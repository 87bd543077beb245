import os
import pytest
from pipelines.solr_cores.errors import EngineUnreachable

SOLR = "http://localhost:8983/solr"

SOLRCONFIG = """<?xml version="1.0" encoding="UTF-8" ?>
<config>
  <luceneMatchVersion>6.6.0</luceneMatchVersion>
  <!-- the default search handler -->
  <requestHandler name="/select" class="solr.SearchHandler">
    <lst name="defaults">
      <str name="echoParams">explicit</str>
      <int name="rows">10</int>
    </lst>
  </requestHandler>
  <searchComponent name="terms" class="solr.TermsComponent"/>
</config>
"""


def cores_status(instance_dir: str | None, name: str = "collection1") -> str:
    core = f'<lst name="{name}"><str name="name">{name}</str>'
    if instance_dir is not None:
        core += f'<str name="instanceDir">{instance_dir}</str>'
    core += "</lst>"
    return ('<?xml version="1.0" encoding="UTF-8"?><response>'
            '<lst name="responseHeader"><int name="status">0</int></lst>'
            f'<lst name="status">{core}</lst></response>')


def showconfig(indexes: str = "", base: str | None = SOLR) -> str:
    setting = f'<setting name="ContentSearch.Solr.ServiceBaseAddress" value="{base}" />' if base is not None else ""
    return f"""<sitecore>
  <settings>{setting}</settings>
  <contentSearch><configuration><indexes>{indexes}</indexes></configuration></contentSearch>
</sitecore>"""


def solr_index(index_id: str, core: str | None = "$(id)") -> str:
    param = f'<param desc="core">{core}</param>' if core is not None else ""
    return (f'<index id="{index_id}" type="Sitecore.ContentSearch.SolrProvider.SolrSearchIndex, '
            f'Sitecore.ContentSearch.SolrProvider">{param}<param desc="name">$(id)</param></index>')


class FakeHttpClient:
    """Scripted responses keyed by action; records every call."""

    def __init__(self, status_body: str = "", fail_create: int | None = None, unreachable: bool = False):
        self.status_body = status_body
        self.fail_create = fail_create
        self.unreachable = unreachable
        self.calls = []

    def get(self, url, params=None):
        self.calls.append((url, dict(params or {})))
        if self.unreachable:
            raise EngineUnreachable(f"GET {url} failed: connection refused", url=url)
        if params and params.get("action") == "CREATE":
            if self.fail_create:
                raise EngineUnreachable(f"GET {url} returned HTTP {self.fail_create}", url=url, status=self.fail_create)
            return '<response><lst name="responseHeader"><int name="status">0</int></lst></response>'
        return self.status_body

    @property
    def creates(self):
        return [p for _, p in self.calls if p.get("action") == "CREATE"]


class RecordingSchemaGenerator:
    def __init__(self, fail: Exception | None = None):
        self.fail = fail
        self.calls = []

    def generate_schema(self, input_path, output_path):
        self.calls.append((input_path, output_path))
        if self.fail:
            raise self.fail
        with open(input_path, encoding="utf-8") as f:
            text = f.read()
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(text.replace("</schema>", '<field name="_content" type="text_general"/></schema>'))


@pytest.fixture
def template_core(tmp_path):
    """A collection1 directory laid out like the one Solr ships."""
    root = tmp_path / "solr" / "collection1"
    conf = root / "conf"
    conf.mkdir(parents=True)
    (root / "core.properties").write_text("name=collection1\n")
    (conf / "managed-schema").write_text('<schema name="example"></schema>')
    (conf / "solrconfig.xml").write_text(SOLRCONFIG)
    (conf / "stopwords.txt").write_text("a\nan\n")
    return str(root)


@pytest.fixture
def generator():
    return RecordingSchemaGenerator()


@pytest.fixture
def http(template_core):
    return FakeHttpClient(cores_status(template_core))


def read(path, *parts):
    with open(os.path.join(path, *parts), encoding="utf-8") as f:
        return f.read()

import sys
import textwrap
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from kup_batch.config import ConverterConfig, GeneratorConfig  # noqa: E402

GENERATOR_SCRIPT = """
import sys
from pathlib import Path

period = sys.argv[1]
with Path({events!r}).open("a", encoding="utf-8") as events:
    events.write(f"generate {{period}}\\n")
sys.stderr.write("diagnostic noise for " + period + "\\n")
sys.stdout.write(f"REPORT {{period}}")
sys.exit(3 if period.startswith("fail") else 0)
"""

CONVERTER_SCRIPT = """
import sys
from pathlib import Path

source, flag, target, engine = sys.argv[1:5]
assert flag == "-o"
with Path({events!r}).open("a", encoding="utf-8") as events:
    events.write(f"convert {{source}} {{target}} {{engine}}\\n")
received = Path({received!r})
received.mkdir(exist_ok=True)
if Path(source).exists():
    (received / source).write_bytes(Path(source).read_bytes())
listing = sorted(path.name for path in Path(".").glob("*.txt"))
(received / (source + ".listing")).write_text("\\n".join(listing), encoding="utf-8")
if "fail" in source:
    sys.exit(5)
body = Path(source).read_bytes()
Path(target).write_bytes(b"%PDF-1.4\\n" + body)
"""


class FakeTools:
    def __init__(self, root: Path) -> None:
        self.root = root
        self.events_path = root / "events.log"
        self.received_dir = root / "received"
        self.generator_script = root / "fake_generator.py"
        self.converter_script = root / "fake_converter.py"
        self.generator_script.write_text(
            textwrap.dedent(GENERATOR_SCRIPT.format(events=str(self.events_path))), encoding="utf-8"
        )
        self.converter_script.write_text(
            textwrap.dedent(CONVERTER_SCRIPT.format(events=str(self.events_path), received=str(self.received_dir))),
            encoding="utf-8",
        )

    @property
    def generator(self) -> GeneratorConfig:
        return GeneratorConfig(command=[sys.executable, str(self.generator_script)])

    @property
    def converter(self) -> ConverterConfig:
        return ConverterConfig(command=[sys.executable, str(self.converter_script)], pdf_engine="fake-tex")

    def events(self) -> list[str]:
        if not self.events_path.exists():
            return []
        return self.events_path.read_text(encoding="utf-8").splitlines()

    def received_bytes(self, source_name: str) -> bytes:
        """Text file content as the converter read it."""
        return (self.received_dir / source_name).read_bytes()

    def text_files_seen(self, source_name: str) -> list[str]:
        """Text files present in the work dir when the converter ran for ``source_name``."""
        listing = (self.received_dir / f"{source_name}.listing").read_text(encoding="utf-8")
        return listing.splitlines()


@pytest.fixture
def fake_tools(tmp_path):
    tools_dir = tmp_path / "tools"
    tools_dir.mkdir()
    return FakeTools(tools_dir)


@pytest.fixture
def work_dir(tmp_path):
    return tmp_path / "out"

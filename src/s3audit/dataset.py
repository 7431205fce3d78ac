import random
from dataclasses import dataclass
from pathlib import Path

# Synthetic text files for the demo upload step

EXTENSIONS = [".txt", ".md", ".log", ".csv", ".json"]

WORDS = (
    "lorem ipsum dolor sit amet consectetur adipiscing elit sed do eiusmod tempor "
    "incididunt ut labore et dolore magna aliqua enim ad minim veniam quis nostrud "
    "exercitation ullamco laboris nisi aliquip ex ea commodo consequat duis aute "
    "irure in reprehenderit voluptate velit esse cillum eu fugiat nulla pariatur "
    "excepteur sint occaecat cupidatat non proident sunt culpa qui officia deserunt "
    "mollit anim id est laborum"
).split()

NAME_WORDS = [
    "report", "invoice", "backup", "sample", "notes", "draft", "summary", "ledger",
    "export", "archive", "metrics", "journal", "snapshot", "catalog", "manifest",
    "budget", "roster", "agenda", "memo", "inventory",
]


@dataclass
class SyntheticFile:
    name: str
    local_path: Path
    size_bytes: int


def ensure_dir(p: Path):
    p.mkdir(parents=True, exist_ok=True)


def random_file_name(rng: random.Random, taken: set[str]) -> str:
    while True:
        name = f"{rng.choice(NAME_WORDS)}{rng.choice(EXTENSIONS)}"
        if name not in taken:
            return name
        # collision: add a numeric suffix instead of redrawing forever
        stem, ext = name.rsplit(".", 1)
        name = f"{stem}-{rng.randint(1000, 9999)}.{ext}"
        if name not in taken:
            return name


def make_paragraph(rng: random.Random) -> str:
    sentences = []
    for _ in range(rng.randint(5, 10)):
        words = [rng.choice(WORDS) for _ in range(rng.randint(6, 12))]
        sentences.append(" ".join(words).capitalize() + ".")
    return " ".join(sentences)


def make_content(size: int, rng: random.Random) -> bytes:
    """Lorem-style text of exactly ``size`` bytes (ASCII only)."""
    chunks = []
    total = 0
    while total < size:
        para = make_paragraph(rng) + "\n\n"
        chunks.append(para)
        total += len(para)
    return "".join(chunks).encode("ascii")[:size]


def generate_files(
    upload_dir: Path,
    count: int | None = None,
    min_files: int = 1,
    max_files: int = 5,
    min_size: int = 1000,
    max_size: int = 50000,
    rng: random.Random | None = None,
) -> list[SyntheticFile]:
    rng = rng or random.Random()
    if count is None:
        count = rng.randint(min_files, max_files)
    if count < 0:
        raise ValueError(f"file count must be non-negative, got {count}")
    if min_size < 1 or min_size > max_size:
        raise ValueError(f"invalid size range [{min_size}, {max_size}]")

    upload_dir = Path(upload_dir)
    ensure_dir(upload_dir)

    files = []
    taken = {p.name for p in upload_dir.iterdir()}
    for _ in range(count):
        name = random_file_name(rng, taken)
        taken.add(name)
        size = rng.randint(min_size, max_size)
        path = upload_dir / name
        with open(path, "wb") as fh:
            fh.write(make_content(size, rng))
        files.append(SyntheticFile(name=name, local_path=path, size_bytes=path.stat().st_size))
    return files

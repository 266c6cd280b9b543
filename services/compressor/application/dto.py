from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class CompressUploadsCommand:
    files: Sequence[UploadedFile]

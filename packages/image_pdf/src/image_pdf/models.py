"""
Descriptors for source images and the groups they are converted in.
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

ROOT_GROUP_NAME = "_root"
ROOT_DISPLAY_NAME = "root"


class ImageDescriptor(BaseModel):
    """
    One source image.

    working_path starts out equal to source_path; preprocessing may point it
    at a re-encoded copy in a scratch directory. The source file is never
    modified.
    """
    model_config = ConfigDict(frozen=True)

    display_name: str
    source_path: str
    file_size_bytes: int = Field(0, ge=0)
    working_path: str
    was_preprocessed: bool = False

    @classmethod
    def from_path(cls, display_name: str, source_path: str, file_size_bytes: int) -> "ImageDescriptor":
        return cls(
            display_name=display_name,
            source_path=source_path,
            file_size_bytes=file_size_bytes,
            working_path=source_path,
        )

    def with_working_copy(self, working_path: str) -> "ImageDescriptor":
        return self.model_copy(update={"working_path": working_path, "was_preprocessed": True})


class ImageGroup(BaseModel):
    """Ordered images of one directory, converted into one PDF."""
    model_config = ConfigDict(frozen=True)

    name: str
    path: str
    images: List[ImageDescriptor] = Field(..., min_length=1)

    @property
    def display_name(self) -> str:
        return ROOT_DISPLAY_NAME if self.name == ROOT_GROUP_NAME else self.name

    @property
    def count(self) -> int:
        return len(self.images)

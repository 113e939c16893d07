"""
Task Schemas

Pydantic model describing one file to hash. The CLI builds one task per
positional argument; parameters are validated before any file is opened.

"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mediahash.core.errors import ArgumentError
from mediahash.models import HashMethod


class HashComputationTask(BaseModel):
    """
    Schema for a single hashing job.

    Attributes:
        src_file_name: Path of the image or video file
        bits: Requested grid size (bits x bits cells per image)
        hashing_method: Which hash to compute
        debug: Print intermediate grids and dump sampled video frames
        video: Treat the file as a video container
    """

    model_config = ConfigDict(frozen=True)

    src_file_name: str = Field(..., min_length=1, description="Input file path")
    bits: int = Field(..., gt=0, description="Requested grid size, a multiple of 4")
    hashing_method: HashMethod = Field(
        default=HashMethod.BLOCKHASH, description="Hashing method"
    )
    debug: bool = Field(default=False, description="Debug output")
    video: bool = Field(default=False, description="Input is a video file")

    @field_validator("bits")
    @classmethod
    def _bits_multiple_of_four(cls, v: int) -> int:
        if v % 4:
            raise ArgumentError("bits should be a multiple of 4")
        return v

    @property
    def effective_bits(self) -> int:
        """Grid size actually used: halved per frame for video."""
        return self.bits // 2 if self.video else self.bits

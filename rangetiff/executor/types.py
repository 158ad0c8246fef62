from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class Result(BaseModel):
    output: Any
    exception: Optional[Exception] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

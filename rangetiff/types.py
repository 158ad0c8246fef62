import os
from typing import List, Optional, Tuple, Union

MPathLike = Union[str, os.PathLike]
BandIndexes = Optional[Union[int, List[int], Tuple[int, ...]]]

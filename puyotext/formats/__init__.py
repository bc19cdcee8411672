from .mtx import MtxFile
from .cnvrs_text import CnvrsTextFile, Sheet, TextEntry, FontEntry, LayoutEntry

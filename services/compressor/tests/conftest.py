import os
import tempfile

# services.compressor.main builds an app at import time; keep its directories
# out of the working tree.
_SCRATCH = tempfile.mkdtemp(prefix="compressor-tests-")
os.environ.setdefault("COMPRESSOR_OUTPUT_DIR", os.path.join(_SCRATCH, "compressed"))
os.environ.setdefault("COMPRESSOR_TEMP_DIR", os.path.join(_SCRATCH, "tmp"))

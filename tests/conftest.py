import os
import tempfile

# Keep module-level stores out of the source tree during tests.
os.environ.setdefault("QUIZ_DIR", tempfile.mkdtemp(prefix="quizdeck-"))

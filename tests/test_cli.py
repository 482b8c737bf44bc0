import io
import os
import tempfile
import unittest
from contextlib import contextmanager, redirect_stdout
from pathlib import Path
from unittest import mock

os.environ.setdefault("GIGRADAR_DATABASE_URL", "sqlite:///:memory:")

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gigradar import cli
from gigradar.db.models import Base

PASTE = (
    "Posted 2 hours ago\nBakery landing page\nEst. budget:\n$500\nLanding page with online ordering.\n"
    "Posted 2 hours ago\nBakery landing page\nEst. budget:\n$500\nLanding page with online ordering.\n"
    "Posted 1 day ago\nFix my Django checkout\nCheckout crashes on coupons.\n"
)


class CliTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.paste_file = Path(tmp.name) / "paste.txt"
        self.paste_file.write_text(PASTE, encoding="utf-8")

        engine = create_engine(
            "sqlite:///:memory:",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(engine)
        SessionLocal = sessionmaker(bind=engine)

        @contextmanager
        def override_get_session():
            with SessionLocal() as session:
                yield session

        session_patch = mock.patch("gigradar.db.session.get_session", override_get_session)
        session_patch.start()
        self.addCleanup(session_patch.stop)

    def test_dry_run_prints_plan(self):
        out = io.StringIO()
        with redirect_stdout(out):
            code = cli.main([str(self.paste_file), "--dry-run", "--batch-size", "1"])
        self.assertEqual(code, 0)
        text = out.getvalue()
        self.assertIn("[duplicate]", text)
        self.assertIn("chunks=3 to_classify=2 unknown=0 pre_filtered=1 batches=2", text)

    def test_missing_api_key(self):
        with mock.patch.dict(os.environ, {"ANTHROPIC_API_KEY": ""}):
            self.assertEqual(cli.main([str(self.paste_file)]), 2)


if __name__ == "__main__":
    unittest.main()

import unittest
from datetime import datetime, timedelta, timezone

from projects_backend.db import InMemoryProjectStore, ProjectRecord
from projects_backend.errors import NotFoundError, StoreError, ValidationError
from projects_backend.service import ProjectService
from projects_backend.storage import ImageUpload


def _image(name="logo.png"):
    return ImageUpload(filename=name, content_type="image/png", data=b"png")


class RecordingAssetStore:
    """Hands out sequential references and remembers what happened."""

    def __init__(self, fail_release=False):
        self.stored = []
        self.released = []
        self.fail_release = fail_release

    def store(self, upload):
        reference = f"/uploads/{len(self.stored)}-{upload.filename}"
        self.stored.append(reference)
        return reference

    def release(self, reference):
        if self.fail_release:
            raise OSError("disk on fire")
        self.released.append(reference)

    def close(self):
        pass


class BrokenProjectStore(InMemoryProjectStore):
    def insert(self, record):
        raise RuntimeError("connection refused")

    def find_all(self):
        raise RuntimeError("connection refused")

    def delete(self, project_id):
        raise RuntimeError("connection refused")


class FailingWriteStore(InMemoryProjectStore):
    """Reads work, writes do not."""

    def update(self, project_id, changes):
        raise RuntimeError("connection refused")


class UnreachableStore(InMemoryProjectStore):
    def find_by_id(self, project_id):
        raise RuntimeError("connection refused")


class InterleavedEditStore(InMemoryProjectStore):
    """Another writer edits the description between the read and the write."""

    def find_by_id(self, project_id):
        record = super().find_by_id(project_id)
        self.projects[project_id].description = "concurrent edit"
        return record


class ProjectServiceTests(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryProjectStore()
        self.assets = RecordingAssetStore()
        self.service = ProjectService(store=self.store, assets=self.assets)

    def _create(self, title="Portfolio"):
        return self.service.create_project(
            title=title, description="A site", url="https://ex.com", image=_image()
        )

    def test_create_assigns_id_and_timestamp(self):
        record = self._create()
        self.assertTrue(record.id)
        self.assertIsNotNone(record.created_at.tzinfo)
        self.assertEqual(record.image_path, self.assets.stored[0])
        self.assertEqual([r.id for r in self.service.list_projects()], [record.id])

    def test_create_requires_every_field(self):
        cases = [
            dict(title="", description="d", url="u", image=_image()),
            dict(title="t", description=None, url="u", image=_image()),
            dict(title="t", description="d", url="", image=_image()),
            dict(title="t", description="d", url="u", image=None),
            dict(title="t", description="d", url="u", image=_image(name="")),
        ]
        for kwargs in cases:
            with self.subTest(kwargs=kwargs):
                with self.assertRaises(ValidationError) as ctx:
                    self.service.create_project(**kwargs)
                self.assertIn("title, description, url, image", ctx.exception.message)
        self.assertEqual(self.assets.stored, [])
        self.assertEqual(self.store.projects, {})

    def test_list_orders_newest_first(self):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        for offset, title in ((1, "middle"), (2, "newest"), (0, "oldest")):
            self.store.insert(
                ProjectRecord(
                    title=title,
                    description="d",
                    url="u",
                    image_path="/uploads/x.png",
                    created_at=base + timedelta(days=offset),
                )
            )
        titles = [r.title for r in self.service.list_projects()]
        self.assertEqual(titles, ["newest", "middle", "oldest"])

    def test_update_keeps_omitted_fields(self):
        record = self._create()
        updated = self.service.update_project(record.id, title="Renamed", url="")
        self.assertEqual(updated.title, "Renamed")
        self.assertEqual(updated.description, record.description)
        self.assertEqual(updated.url, record.url)
        self.assertEqual(updated.image_path, record.image_path)
        self.assertEqual(updated.created_at, record.created_at)
        self.assertEqual(self.assets.released, [])

    def test_update_with_image_releases_previous(self):
        record = self._create()
        updated = self.service.update_project(record.id, image=_image("new.png"))
        self.assertNotEqual(updated.image_path, record.image_path)
        self.assertEqual(self.assets.released, [record.image_path])

    def test_update_unknown_id(self):
        with self.assertRaises(NotFoundError):
            self.service.update_project("missing", title="x", image=_image())
        self.assertEqual(self.assets.stored, [])

    def test_release_failure_is_logged_not_raised(self):
        self.assets.fail_release = True
        record = self._create()
        with self.assertLogs("projects_backend.service", level="WARNING"):
            updated = self.service.update_project(record.id, image=_image("new.png"))
        self.assertEqual(updated.image_path, self.assets.stored[-1])

        with self.assertLogs("projects_backend.service", level="WARNING"):
            self.service.delete_project(record.id)
        self.assertEqual(self.service.list_projects(), [])

    def test_delete_releases_asset(self):
        record = self._create()
        removed = self.service.delete_project(record.id)
        self.assertEqual(removed.id, record.id)
        self.assertEqual(self.assets.released, [record.image_path])
        with self.assertRaises(NotFoundError):
            self.service.delete_project(record.id)

    def test_store_failures_become_store_errors(self):
        service = ProjectService(store=BrokenProjectStore(), assets=self.assets)
        with self.assertLogs("projects_backend.service", level="ERROR"):
            with self.assertRaises(StoreError) as ctx:
                service.create_project("t", "d", "u", _image())
        self.assertEqual(ctx.exception.message, "Error saving to database")
        # The uploaded asset is left behind when the insert fails.
        self.assertEqual(len(self.assets.stored), 1)

        with self.assertLogs("projects_backend.service", level="ERROR"):
            with self.assertRaises(StoreError):
                service.list_projects()
        with self.assertLogs("projects_backend.service", level="ERROR"):
            with self.assertRaises(StoreError):
                service.delete_project("anything")

    def test_update_store_failures_become_store_errors(self):
        record = self._create()
        for store_cls in (FailingWriteStore, UnreachableStore):
            with self.subTest(store=store_cls.__name__):
                store = store_cls()
                store.projects = dict(self.store.projects)
                service = ProjectService(store=store, assets=self.assets)
                with self.assertLogs("projects_backend.service", level="ERROR"):
                    with self.assertRaises(StoreError) as ctx:
                        service.update_project(record.id, title="x")
                self.assertEqual(ctx.exception.message, "Error updating project")

    def test_update_writes_only_supplied_fields(self):
        store = InterleavedEditStore()
        service = ProjectService(store=store, assets=self.assets)
        record = service.create_project("t", "d", "https://ex.com", _image())

        updated = service.update_project(record.id, title="renamed")

        self.assertEqual(updated.title, "renamed")
        self.assertEqual(updated.description, "concurrent edit")
        self.assertEqual(updated.url, "https://ex.com")

    def test_empty_image_payload_counts_as_missing(self):
        empty = ImageUpload(filename="logo.png", content_type="image/png", data=b"")
        with self.assertRaises(ValidationError):
            self.service.create_project("t", "d", "u", empty)
        self.assertEqual(self.assets.stored, [])

        record = self._create()
        updated = self.service.update_project(record.id, image=empty)
        self.assertEqual(updated.image_path, record.image_path)
        self.assertEqual(len(self.assets.stored), 1)

    def test_deleted_record_is_a_copy(self):
        record = self._create()
        held = self.store.projects[record.id]
        removed = self.store.delete(record.id)
        self.assertEqual(removed, held)
        self.assertIsNot(removed, held)


if __name__ == "__main__":
    unittest.main()

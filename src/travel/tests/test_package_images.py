import os
from io import BytesIO
from tempfile import TemporaryDirectory

from PIL import Image
from django.core.exceptions import ValidationError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import SimpleTestCase, TestCase, override_settings

from src.travel.factories import TravelPackageFactory
from src.travel.validators import validate_image_file


def make_image(name="cover.png", size=(64, 64), fmt="PNG"):
    buf = BytesIO()
    Image.new("RGB", size, (30, 120, 200)).save(buf, fmt)
    return SimpleUploadedFile(name, buf.getvalue(), content_type=f"image/{fmt.lower()}")


class ImageValidatorTests(SimpleTestCase):
    def test_accepts_png(self):
        upload = make_image()
        validate_image_file(upload)
        self.assertEqual(upload.tell(), 0)

    def test_rejects_garbage(self):
        with self.assertRaisesMessage(ValidationError, "Unsupported or corrupted image"):
            validate_image_file(SimpleUploadedFile("x.jpg", b"not an image", content_type="image/jpeg"))

    def test_rejects_disallowed_format(self):
        with self.assertRaisesMessage(ValidationError, "Unsupported format: GIF"):
            validate_image_file(make_image("cover.gif", fmt="GIF"))

    @override_settings(PACKAGE_IMAGE_MAX_WIDTH=32, PACKAGE_IMAGE_MAX_HEIGHT=32)
    def test_rejects_oversized_dimensions(self):
        with self.assertRaisesMessage(ValidationError, "Image too large: 64x64px"):
            validate_image_file(make_image())

    @override_settings(PACKAGE_IMAGE_MAX_MB=0)
    def test_rejects_large_file(self):
        with self.assertRaisesMessage(ValidationError, "File too large"):
            validate_image_file(make_image())


class PackageImageCleanupTests(TestCase):
    def setUp(self):
        self.tmpdir = TemporaryDirectory()
        self.addCleanup(self.tmpdir.cleanup)
        self._override = override_settings(MEDIA_ROOT=self.tmpdir.name)
        self._override.enable()
        self.addCleanup(self._override.disable)

    def test_delete_removes_file(self):
        package = TravelPackageFactory(image=make_image())
        path = package.image.path
        self.assertTrue(os.path.exists(path))

        package.delete()
        self.assertFalse(os.path.exists(path))

    def test_replace_removes_old_file(self):
        package = TravelPackageFactory(image=make_image("old.png"))
        old_path = package.image.path

        package.image = make_image("new.png")
        package.save(update_fields=["image"])

        self.assertFalse(os.path.exists(old_path))
        self.assertTrue(os.path.exists(package.image.path))

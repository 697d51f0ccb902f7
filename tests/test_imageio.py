import cv2
import numpy as np
import pytest

from fnoise.imageio import ImageLoadError, ImageSaveError, load_image, save_image, storage_dtype


class TestLoadImage:
    def test_grayscale(self, gray_png):
        image = load_image(gray_png)
        assert image.bits_per_channel == 8
        assert image.data.dtype == np.float32
        assert image.data.shape == (1, 16, 20)
        assert (image.num_channels, image.height, image.width) == (1, 16, 20)
        expected = (np.arange(16 * 20) % 256).reshape(16, 20)
        np.testing.assert_array_equal(image.data[0], expected)

    def test_color(self, color_png):
        image = load_image(color_png)
        assert image.data.shape == (3, 12, 18)
        raw = cv2.imread(str(color_png), cv2.IMREAD_UNCHANGED)
        np.testing.assert_array_equal(image.data[1], raw[:, :, 1])

    def test_sixteen_bit(self, tmp_path):
        path = tmp_path / "deep.png"
        cv2.imwrite(str(path), np.full((4, 4), 40000, dtype=np.uint16))
        image = load_image(path)
        assert image.bits_per_channel == 16
        assert image.data.max() == 40000

    def test_missing_file(self, tmp_path):
        with pytest.raises(ImageLoadError):
            load_image(tmp_path / "missing.png")


class TestSaveImage:
    def test_round_trip(self, color_png, tmp_path):
        image = load_image(color_png)
        target = tmp_path / "nested" / "copy.png"
        save_image(target, image.data, bits=8)
        np.testing.assert_array_equal(load_image(target).data, image.data)

    def test_values_are_rounded_and_clipped(self, tmp_path):
        data = np.array([[[-5.0, 12.4, 12.6, 300.0]]], dtype=np.float32)
        target = tmp_path / "clipped.png"
        save_image(target, data, bits=8)
        np.testing.assert_array_equal(load_image(target).data[0, 0], [0, 12, 13, 255])

    def test_sixteen_bit_output(self, tmp_path):
        data = np.full((1, 3, 3), 1000.0, dtype=np.float32)
        target = tmp_path / "deep.png"
        save_image(target, data, bits=16)
        image = load_image(target)
        assert image.bits_per_channel == 16
        np.testing.assert_array_equal(image.data, data)

    def test_unsupported_extension(self, tmp_path):
        with pytest.raises(ImageSaveError):
            save_image(tmp_path / "image.unknown", np.zeros((1, 2, 2), np.float32))

    def test_rejects_flat_data(self, tmp_path):
        with pytest.raises(ValueError):
            save_image(tmp_path / "flat.png", np.zeros(4, np.float32))


def test_storage_dtype():
    assert storage_dtype(8) == np.uint8
    assert storage_dtype(1) == np.uint8
    assert storage_dtype(12) == np.uint16
    with pytest.raises(ValueError):
        storage_dtype(17)

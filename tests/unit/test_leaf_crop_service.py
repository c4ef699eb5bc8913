import io
import base64
from unittest.mock import MagicMock

import pytest
from PIL import Image

from leafcrops.core.exceptions import ImageDecodeError
from leafcrops.engines.leaf_crops import (
    BoundingBox,
    LeafCropService,
    SegmentationConfig,
    compute_leaf_crops,
)
from leafcrops.engines.leaf_crops.surface import PillowSurface, SurfaceError, CropRenderError


def decode_crop(data_url: str) -> Image.Image:
    header, _, payload = data_url.partition(",")
    assert header == "data:image/jpeg;base64"
    image = Image.open(io.BytesIO(base64.b64decode(payload)))
    image.load()
    return image


class FailingFirstRenderSurface(PillowSurface):
    """Refuses to render the first crop it is asked for."""

    def __init__(self):
        super().__init__()
        self.calls = 0

    def render_crop(self, image, box, out_w, out_h):
        self.calls += 1
        if self.calls == 1:
            raise CropRenderError("no drawing surface")
        return super().render_crop(image, box, out_w, out_h)


class NoRasterSurface(PillowSurface):
    def sample(self, image, width, height):
        raise SurfaceError("no drawing surface")


@pytest.fixture
def service() -> LeafCropService:
    return LeafCropService()


def test_uniform_dark_image_yields_nothing(service, dark_image):
    result = service.extract(dark_image, max_leaves=3)

    assert result.crops == []
    assert result.components_found == 0


def test_full_green_frame_is_one_crop_covering_the_image(service, full_green_image):
    result = service.extract(full_green_image, max_leaves=3)

    assert result.count == 1
    assert result.components_found == 1
    assert result.working_width == 100 and result.working_height == 100

    crop = result.crops[0]
    assert crop.bbox == BoundingBox(x=0, y=0, w=100, h=100)
    assert decode_crop(crop.data_url).size == (100, 100)


def test_two_squares_ranked_largest_first(service, two_squares_image):
    result = service.extract(two_squares_image, max_leaves=2)

    assert [c.bbox for c in result.crops] == [
        BoundingBox(x=4, y=4, w=72, h=72),
        BoundingBox(x=117, y=117, w=36, h=36),
    ]
    assert decode_crop(result.crops[0].data_url).size == (72, 72)


def test_max_leaves_bounds_output(service, two_squares_image):
    assert service.extract(two_squares_image, max_leaves=1).count == 1
    assert service.extract(two_squares_image, max_leaves=0).count == 1
    assert service.extract(two_squares_image, max_leaves=10).count == 2


def test_extraction_is_deterministic(service, two_squares_image):
    first = service.extract(two_squares_image, max_leaves=2)
    second = service.extract(two_squares_image, max_leaves=2)

    assert first.crops == second.crops


def test_downscaled_crops_stay_inside_source():
    image = Image.new("RGB", (1000, 600), (0, 0, 0))
    image.paste((20, 180, 30), (0, 0, 500, 600))
    image.paste((20, 180, 30), (800, 100, 950, 250))
    image.paste((20, 180, 30), (990, 590, 1000, 600))  # sub-noise speck

    result = LeafCropService().extract(image, max_leaves=5)

    assert result.working_width == 320
    assert result.working_height == 192
    assert result.count == 2
    assert result.components_kept == 2

    areas = [c.bbox.w * c.bbox.h for c in result.crops]
    assert areas == sorted(areas, reverse=True)
    for crop in result.crops:
        assert crop.bbox.x >= 0 and crop.bbox.y >= 0
        assert crop.bbox.right <= 1000
        assert crop.bbox.bottom <= 600
        assert decode_crop(crop.data_url).width <= 320


def test_large_crop_is_thumbnailed():
    image = Image.new("RGB", (2000, 1000), (0, 200, 0))

    result = LeafCropService().extract(image, max_leaves=1)

    assert result.crops[0].bbox == BoundingBox(x=0, y=0, w=2000, h=1000)
    assert decode_crop(result.crops[0].data_url).size == (320, 160)


def test_transparent_pixels_count_as_background():
    image = Image.new("RGBA", (100, 100), (0, 200, 0, 0))

    assert LeafCropService().extract(image, max_leaves=3).crops == []


def test_unrenderable_crop_is_skipped(two_squares_image):
    service = LeafCropService(surface=FailingFirstRenderSurface())

    result = service.extract(two_squares_image, max_leaves=2)

    assert [c.bbox for c in result.crops] == [BoundingBox(x=117, y=117, w=36, h=36)]
    assert result.crops_skipped == 1


def test_missing_raster_yields_empty_result(full_green_image):
    service = LeafCropService(surface=NoRasterSurface())

    assert service.extract(full_green_image, max_leaves=3).crops == []


def test_image_without_dimensions_yields_empty_result(service):
    image = MagicMock(spec=Image.Image)
    image.size = (0, 0)

    result = service.extract(image, max_leaves=3)

    assert result.crops == []
    assert result.working_width == 0


def test_custom_config_changes_noise_floor(two_squares_image):
    strict = SegmentationConfig(min_component_area=1000)

    result = LeafCropService(config=strict).extract(two_squares_image, max_leaves=2)

    assert result.count == 1
    assert result.components_found == 2


@pytest.mark.asyncio
async def test_analyze_data_url(service, two_squares_image, png_data_url):
    result = await service.analyze(png_data_url(two_squares_image), max_leaves=2)

    assert result.count == 2
    assert result.source_width == 200


@pytest.mark.asyncio
async def test_analyze_bytes(service, full_green_image, png_bytes):
    result = await service.analyze_bytes(png_bytes(full_green_image), max_leaves=1)

    assert result.crops[0].bbox == BoundingBox(x=0, y=0, w=100, h=100)


@pytest.mark.asyncio
async def test_undecodable_image_raises(service):
    garbage = "data:image/png;base64," + base64.b64encode(b"not an image").decode("ascii")

    with pytest.raises(ImageDecodeError):
        await service.analyze(garbage, max_leaves=3)


@pytest.mark.asyncio
async def test_compute_leaf_crops_returns_crops_only(full_green_image, png_data_url):
    crops = await compute_leaf_crops(png_data_url(full_green_image), 3)

    assert len(crops) == 1
    assert crops[0].bbox == BoundingBox(x=0, y=0, w=100, h=100)

"""
Watermark Editor - Logo Asset Library

Decoded logo images keyed by id. Image layers reference assets by id and
never hold pixel data themselves, so one asset can feed many layers.
"""

import logging
import uuid as uuid_module
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from models.raster import RasterImage


@dataclass(frozen=True)
class LogoAsset:
    """Immutable decoded logo"""
    name: str
    image: RasterImage
    id: str = field(default_factory=lambda: str(uuid_module.uuid4()))

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @property
    def aspect(self) -> float:
        """height / width"""
        return self.image.height / self.image.width


class AssetLibrary:
    """Id-keyed logo store

    Removing an asset leaves referencing layers in place; the compositor
    skips them until they point at an existing asset again.
    """

    def __init__(self):
        self._logger = logging.getLogger('AssetLibrary')
        self._assets: Dict[str, LogoAsset] = {}
        self._listeners = []

    def add_listener(self, callback: Callable[[], None]):
        self._listeners.append(callback)

    def _changed(self):
        for callback in list(self._listeners):
            callback()

    def __len__(self):
        return len(self._assets)

    def __contains__(self, asset_id):
        return asset_id in self._assets

    def __iter__(self):
        return iter(list(self._assets.values()))

    def add(self, image: RasterImage, name: str = 'logo', asset_id: Optional[str] = None) -> LogoAsset:
        """Register a decoded logo and return its asset"""
        asset = LogoAsset(name=name, image=image) if asset_id is None else \
            LogoAsset(name=name, image=image, id=asset_id)
        if asset.id in self._assets:
            raise ValueError(f"Asset with id '{asset.id}' already exists")
        self._assets[asset.id] = asset
        self._logger.debug(f"Added asset {asset.id} ({name}, {image.width}x{image.height})")
        self._changed()
        return asset

    def get(self, asset_id) -> Optional[LogoAsset]:
        """Resolve an asset id, None if missing"""
        if asset_id is None:
            return None
        return self._assets.get(asset_id)

    def ids(self) -> List[str]:
        return list(self._assets)

    def remove(self, asset_id: str, confirm: Callable[[], bool]) -> bool:
        """Delete an asset after explicit confirmation

        Args:
            asset_id: Asset to delete
            confirm: Gate called before deleting; nothing happens unless
                it returns True

        Returns:
            True if the asset was deleted

        Raises:
            ValueError: If id not found
        """
        if asset_id not in self._assets:
            raise ValueError(f"Asset with id '{asset_id}' not found")
        if not confirm():
            return False
        del self._assets[asset_id]
        self._logger.debug(f"Removed asset {asset_id}")
        self._changed()
        return True

"""
Хранилище контекстов о местах Ресифи.

Хранит описания точек интереса, событий и сервисов с TTL
и умеет искать контексты рядом с заданной точкой.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from context_relay.infrastructure.expiring_map import ExpiringMap
from context_relay.models.schemas import Coordinates, NearbyPlace, PlaceContext, PlaceSummary

from .geo import RECIFE_REGION, BoundingRegion, distance_m

logger = logging.getLogger("context-relay.context_store")

DEFAULT_RADIUS_M = 500


DEFAULT_CONTEXTS = [
    PlaceContext(
        id="marco_zero",
        name="Marco Zero",
        description="Praça central e histórica do Recife, ponto de medida de todas as distâncias na cidade",
        location=Coordinates(latitude=-8.063053, longitude=-34.871099),
        details={
            "info": (
                "O Marco Zero é um dos principais pontos turísticos do Recife, localizado no Bairro do Recife. "
                "É o marco oficial que representa o local onde a cidade foi fundada. A partir dele, medem-se "
                "as distâncias da capital pernambucana para outras localidades. A praça abriga uma estátua de "
                "bronze de Barão do Rio Branco e é cercada por edifícios históricos."
            ),
            "events": (
                "Frequentemente ocorrem apresentações culturais, especialmente durante o Carnaval "
                "e outras festividades locais."
            ),
        },
        services=["Informações turísticas", "Alimentação nas proximidades", "Passeios de catamarã"],
    ),
    PlaceContext(
        id="rua_bom_jesus",
        name="Rua do Bom Jesus",
        description="Rua histórica em Recife Antigo, antiga Rua dos Judeus",
        location=Coordinates(latitude=-8.062457, longitude=-34.872466),
        details={
            "info": (
                "A Rua do Bom Jesus é uma das mais antigas e famosas do Recife. Antigamente conhecida como Rua "
                "dos Judeus, por ter abrigado a primeira sinagoga das Américas, hoje é um ponto cultural "
                "importante com casarões coloridos, bares e restaurantes. Durante o domingo, se transforma em "
                "um polo de atrações com música ao vivo."
            ),
            "history": (
                "Abrigou a primeira sinagoga das Américas, Kahal Zur Israel, construída durante o período "
                "holandês no Brasil."
            ),
        },
        services=["Bares e restaurantes", "Lojas de artesanato", "Pontos culturais"],
    ),
    PlaceContext(
        id="paco_do_frevo",
        name="Paço do Frevo",
        description="Museu dedicado ao frevo, Patrimônio Imaterial da Humanidade",
        location=Coordinates(latitude=-8.062151, longitude=-34.872022),
        details={
            "info": (
                "O Paço do Frevo é um espaço cultural dedicado à difusão, pesquisa e ensino do frevo, ritmo "
                "pernambucano declarado Patrimônio Imaterial da Humanidade pela UNESCO. O museu possui "
                "exposições permanentes e temporárias, além de oferecer aulas de dança."
            ),
            "operating_hours": "Terça a sexta: 10h às 17h, Sábados e domingos: 11h às 18h",
        },
        services=["Exposições", "Aulas de dança", "Biblioteca especializada", "Loja de souvenirs"],
    ),
]


class PlaceContextStore:
    """
    Репозиторий контекстов: id -> PlaceContext с TTL.

    Контексты с координатами вне региона отклоняются и не сохраняются.
    Отсутствие контекста никогда не является исключением: get возвращает
    None, remove возвращает False.

    Пример:
        >>> store = PlaceContextStore(ttl_seconds=86400)
        >>> store.add("marco_zero", place)
        True
        >>> store.find_nearby(Coordinates(latitude=-8.0631, longitude=-34.8711), radius_m=200)
    """

    def __init__(
        self,
        region: BoundingRegion = RECIFE_REGION,
        ttl_seconds: float = 86400,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.region = region
        self._entries: ExpiringMap[PlaceContext] = ExpiringMap(
            default_ttl=ttl_seconds, clock=clock, name="contexts"
        )

    @property
    def entries(self) -> ExpiringMap:
        return self._entries

    def seed_defaults(self) -> int:
        """
        Зарегистрировать контексты по умолчанию (основные точки Recife Antigo).

        Returns:
            Количество добавленных контекстов
        """
        added = sum(1 for place in DEFAULT_CONTEXTS if self.add(place.id, place))
        logger.info(f"[ContextStore] Seeded {added} default contexts")
        return added

    def add(self, context_id: str, place: PlaceContext) -> bool:
        """
        Добавить или полностью заменить контекст.

        Returns:
            False, если координаты вне региона (хранилище не меняется)
        """
        if not self.region.contains(place.location):
            logger.warning(
                f"[ContextStore] Location of {context_id} ({place.location.latitude}, "
                f"{place.location.longitude}) is outside the region and will not be added"
            )
            return False

        stored = place.model_copy(
            update={"id": context_id, "updated_at": datetime.now(timezone.utc)}
        )
        self._entries.set(context_id, stored)
        logger.info(f"[ContextStore] Stored context {context_id} ({stored.name})")
        return True

    def get(self, context_id: str) -> Optional[PlaceContext]:
        return self._entries.get(context_id)

    def list(self) -> List[PlaceSummary]:
        return [
            PlaceSummary(
                id=context_id,
                name=place.name,
                description=place.description,
                location=place.location,
            )
            for context_id, place in self._entries.items()
        ]

    def find_nearby(self, point: Coordinates, radius_m: float = DEFAULT_RADIUS_M) -> List[NearbyPlace]:
        """
        Найти контексты в радиусе radius_m метров от точки.

        Returns:
            Контексты с distance_m, отсортированные от ближайшего
        """
        matches = []
        for context_id, place in self._entries.items():
            distance = distance_m(point, place.location)
            if distance <= radius_m:
                matches.append((distance, place))

        matches.sort(key=lambda item: item[0])
        logger.debug(
            f"[ContextStore] find_nearby({point.latitude}, {point.longitude}, r={radius_m}) "
            f"-> {len(matches)} matches"
        )
        return [
            NearbyPlace(**place.model_dump(), distance_m=round(distance))
            for distance, place in matches
        ]

    def remove(self, context_id: str) -> bool:
        removed = self._entries.delete(context_id)
        logger.info(f"[ContextStore] Remove {context_id}: {'removed' if removed else 'not found'}")
        return removed

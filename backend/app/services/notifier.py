"""
Notifications visibles par l'utilisateur (succès / erreur).
Chaque notification est journalisée et conservée pour l'affichage.
"""

import logging
from dataclasses import dataclass, field
from typing import List

logger = logging.getLogger(__name__)

SUCCESS = "success"
ERROR = "error"


@dataclass
class Notification:
    level: str
    message: str


@dataclass
class Notifier:
    notifications: List[Notification] = field(default_factory=list)

    def success(self, message: str) -> None:
        logger.info("Notification : %s", message)
        self.notifications.append(Notification(SUCCESS, message))

    def error(self, message: str) -> None:
        logger.warning("Notification d'erreur : %s", message)
        self.notifications.append(Notification(ERROR, message))

    @property
    def last(self):
        return self.notifications[-1] if self.notifications else None

    def clear(self) -> None:
        self.notifications.clear()

from __future__ import annotations

import logging

from zusi_fpn.application.generated_train import GeneratedTrain
from zusi_fpn.application.rolling_stock import replace_rolling_stock
from zusi_fpn.domain.entities import CopyDelayConfig, CopyDelayTask
from zusi_fpn.domain.value_objects import TrainNumber
from zusi_fpn.infrastructure.environment import ZusiEnvironment

logger = logging.getLogger(__name__)


def copy_delay(
    env: ZusiEnvironment, config: CopyDelayConfig, seed: GeneratedTrain
) -> list[GeneratedTrain]:
    """Return the copies of seed for all tasks, in task order then copy order.

    Raises InvalidTrainNumberError, TrainNumberNegativeError.
    """
    copies: list[GeneratedTrain] = []
    for task in config.tasks:
        copies.extend(_apply_task(env, task, seed))
    return copies


def _apply_task(env: ZusiEnvironment, task: CopyDelayTask, seed: GeneratedTrain) -> list[GeneratedTrain]:
    number = TrainNumber.parse(seed.train.number or "")

    template = seed
    if task.rolling_stock is not None:
        template = seed.copy()
        replace_rolling_stock(env, task.rolling_stock, template)

    copies = []
    for n in range(1, task.count + 1):
        train = template.copy()
        train.train.number = str(number.increment(task.increment_of(n)))
        train.shift(task.delay_of(n))
        if train.ptt is not None:
            train.ptt.number = train.train.number
        logger.debug("Copied %s as %s", seed.label, train.label)
        copies.append(train)
    return copies

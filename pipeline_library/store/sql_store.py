"""
SQL implementation of the pipeline store.

Revision ``"0"`` always addresses the head. Stored snapshots are numbered
``"1"``, ``"2"``, ... in the order they were written.
"""

import asyncio
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from uuid import uuid4
from weakref import WeakValueDictionary

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pipeline_library.exceptions import (
    ConflictError,
    PipelineAlreadyExistsError,
    PipelineConflictError,
    PipelineNotFoundError,
    PipelineRevisionNotFoundError,
    RuleDefinitionsConflictError,
    StoreError,
)
from pipeline_library.models import (
    HEAD_REV,
    PipelineConfiguration,
    PipelineInfo,
    PipelineRecord,
    PipelineRevInfo,
    PipelineRevisionRecord,
    PipelineRulesRecord,
    RuleDefinitions,
    default_pipeline_configuration,
)
from pipeline_library.models.store import utcnow
from pipeline_library.repositories import (
    PipelineRepository,
    PipelineRevisionRepository,
    PipelineRulesRepository,
)
from pipeline_library.store.base import PipelineStore
from pipeline_library.utils.logger import logger

FIRST_REV = "1"


def _to_info(record: PipelineRecord) -> PipelineInfo:
    return PipelineInfo(
        name=record.name,
        description=record.description,
        creator=record.creator,
        last_modifier=record.last_modifier,
        created=record.created,
        last_modified=record.last_modified,
        last_rev=record.last_rev,
        uuid=record.uuid,
    )


def _to_rev_info(record: PipelineRecord, revision: PipelineRevisionRecord) -> PipelineRevInfo:
    return PipelineRevInfo(
        name=record.name,
        description=revision.document.get("description", ""),
        creator=record.creator,
        last_modifier=revision.user,
        created=record.created,
        last_modified=revision.created,
        last_rev=revision.rev,
        uuid=revision.document.get("uuid") or record.uuid,
        tag=revision.tag,
        tag_description=revision.tag_description,
    )


def _dump_config(config: PipelineConfiguration) -> dict[str, Any]:
    return config.model_dump(mode="json", exclude={"info"})


class SqlPipelineStore(PipelineStore):
    """Pipeline store backed by SQLModel tables.

    Every operation runs in its own session. Writes to one pipeline name are
    serialized by a per-name lock.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        default_memory_limit_mb: int = 1024,
    ):
        """Initialize the store.

        Args:
            session_factory: Factory producing async sessions
            default_memory_limit_mb: Memory limit given to newly created pipelines
        """
        self.session_factory = session_factory
        self.default_memory_limit_mb = default_memory_limit_mb
        # Entries vanish once no coroutine holds or waits on the lock
        self._locks: WeakValueDictionary[str, asyncio.Lock] = WeakValueDictionary()

    def _lock(self, name: str) -> asyncio.Lock:
        lock = self._locks.get(name)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[name] = lock
        return lock

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession]:
        async with self.session_factory() as session:
            try:
                yield session
            except IntegrityError as e:
                await session.rollback()
                raise ConflictError(
                    f"Concurrent modification of the pipeline store: {e.orig}"
                ) from e
            except SQLAlchemyError as e:
                await session.rollback()
                logger.error(f"Pipeline store failure: {e}")
                raise StoreError(f"Pipeline store failure: {e}") from e

    async def list_pipelines(self) -> list[PipelineInfo]:
        async with self._session() as session:
            records = await PipelineRepository(session).list_ordered()
            return [_to_info(record) for record in records]

    async def get_info(self, name: str) -> PipelineInfo:
        async with self._session() as session:
            return _to_info(await PipelineRepository(session).get(name))

    async def get_history(self, name: str) -> list[PipelineRevInfo]:
        async with self._session() as session:
            record = await PipelineRepository(session).get(name)
            revisions = await PipelineRevisionRepository(session).history(name)
            return [_to_rev_info(record, revision) for revision in revisions]

    async def load(self, name: str, rev: str = HEAD_REV) -> PipelineConfiguration:
        async with self._session() as session:
            record = await PipelineRepository(session).get(name)
            concrete_rev = record.last_rev if rev == HEAD_REV else rev
            revision = await PipelineRevisionRepository(session).get_revision(name, concrete_rev)
            if revision is None:
                raise PipelineRevisionNotFoundError(name, rev)

            config = PipelineConfiguration.model_validate(revision.document)
            if concrete_rev == record.last_rev:
                return config.model_copy(update={"uuid": record.uuid, "info": _to_info(record)})
            return config.model_copy(update={"info": _to_rev_info(record, revision)})

    async def create(self, name: str, description: str, user: str) -> PipelineConfiguration:
        async with self._lock(name):
            try:
                async with self._session() as session:
                    pipelines = PipelineRepository(session)
                    if await pipelines.get_optional(name) is not None:
                        raise PipelineAlreadyExistsError(name)

                    now = utcnow()
                    config = PipelineConfiguration(
                        uuid=str(uuid4()),
                        description=description,
                        configuration=default_pipeline_configuration(),
                        memory_limit_mb=self.default_memory_limit_mb,
                    )
                    record = pipelines.add(
                        PipelineRecord(
                            name=name,
                            description=description,
                            creator=user,
                            last_modifier=user,
                            created=now,
                            last_modified=now,
                            last_rev=FIRST_REV,
                            uuid=config.uuid,
                        )
                    )
                    PipelineRevisionRepository(session).add(
                        PipelineRevisionRecord(
                            pipeline_name=name,
                            rev=FIRST_REV,
                            user=user,
                            created=now,
                            document=_dump_config(config),
                        )
                    )
                    await session.commit()
            except ConflictError as e:
                raise PipelineAlreadyExistsError(name) from e

            logger.debug(f"Stored pipeline '{name}' at revision {FIRST_REV}")
            return config.model_copy(update={"info": _to_info(record)})

    async def save(
        self,
        name: str,
        user: str,
        tag: str,
        tag_description: str | None,
        config: PipelineConfiguration,
    ) -> PipelineConfiguration:
        async with self._lock(name), self._session() as session:
            pipelines = PipelineRepository(session)
            record = await pipelines.get(name)
            if config.uuid is not None and config.uuid != record.uuid:
                raise PipelineConflictError(name)

            now = utcnow()
            next_rev = str(int(record.last_rev) + 1)
            saved = config.model_copy(update={"uuid": str(uuid4()), "info": None})
            pipelines.update(
                record,
                {
                    "description": saved.description,
                    "last_modifier": user,
                    "last_modified": now,
                    "last_rev": next_rev,
                    "uuid": saved.uuid,
                },
            )
            PipelineRevisionRepository(session).add(
                PipelineRevisionRecord(
                    pipeline_name=name,
                    rev=next_rev,
                    tag=tag,
                    tag_description=tag_description,
                    user=user,
                    created=now,
                    document=_dump_config(saved),
                )
            )
            await session.commit()

            logger.debug(f"Stored pipeline '{name}' at revision {next_rev}")
            return saved.model_copy(update={"info": _to_info(record)})

    async def delete(self, name: str) -> None:
        async with self._lock(name), self._session() as session:
            pipelines = PipelineRepository(session)
            record = await pipelines.get(name)
            await PipelineRevisionRepository(session).delete_by(pipeline_name=name)
            await pipelines.delete(record)
            await session.commit()

    async def retrieve_rules(self, name: str, rev: str = HEAD_REV) -> RuleDefinitions | None:
        async with self._session() as session:
            record = await PipelineRulesRepository(session).get_rules(name, rev)
            if record is None:
                return None
            rules = RuleDefinitions.model_validate(record.document)
            rules.uuid = record.uuid
            return rules

    async def store_rules(self, name: str, rev: str, rules: RuleDefinitions) -> RuleDefinitions:
        async with self._lock(name), self._session() as session:
            if not await PipelineRepository(session).exists(name=name):
                raise PipelineNotFoundError(name)

            repo = PipelineRulesRepository(session)
            existing = await repo.get_rules(name, rev)
            if existing is not None and rules.uuid is not None and rules.uuid != existing.uuid:
                raise RuleDefinitionsConflictError(name)

            new_uuid = str(uuid4())
            document = rules.model_dump(mode="json", exclude={"uuid", "rule_issues"})
            if existing is None:
                record = PipelineRulesRecord(
                    pipeline_name=name, rev=rev, uuid=new_uuid, document=document
                )
                repo.add(record)
            else:
                repo.update(existing, {"uuid": new_uuid, "document": document})
            await session.commit()

            persisted = rules.model_copy(deep=True)
            persisted.uuid = new_uuid
            return persisted

    async def delete_rules(self, name: str) -> None:
        async with self._lock(name), self._session() as session:
            await PipelineRulesRepository(session).delete_for_pipeline(name)
            await session.commit()

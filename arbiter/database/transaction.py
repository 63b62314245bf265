"""Atomic units of work over an AsyncSession."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from arbiter.exceptions import AppException, InfrastructureException


@asynccontextmanager
async def unit_of_work(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit everything done inside the block, or nothing.

    Any exception raised inside the block (guard violations included) rolls
    back every write issued since the block started. Driver errors surface as
    ``InfrastructureException`` so callers only ever see the domain taxonomy.
    """
    try:
        yield session
        await session.commit()
    except AppException:
        await session.rollback()
        raise
    except SQLAlchemyError as exc:
        await session.rollback()
        raise InfrastructureException("Database error while applying changes") from exc
    except Exception:
        await session.rollback()
        raise

# scripts/seed_data.py
import asyncio
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from core.constants import TEMPLATE_TYPES
from core.database import AsyncSessionLocal, engine
from models.base import Base
from models.email_template import EmailTemplate
from services.email_templates import DEFAULT_TEMPLATES, TEMPLATE_VARIABLES
import models  # noqa: F401  registers every table on Base.metadata


async def create_tables(bind=None):
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def init_email_templates(db: AsyncSession) -> int:
    """Insert bundled templates that are not in the table yet; existing rows are left as edited."""
    created = 0
    for template_type, template in DEFAULT_TEMPLATES.items():
        result = await db.execute(
            select(EmailTemplate).where(EmailTemplate.type == template_type)
        )
        if result.scalar_one_or_none():
            continue

        db.add(EmailTemplate(
            type=template_type,
            description=TEMPLATE_TYPES.get(template_type),
            subject=template["subject"],
            html_content=template["html"].strip(),
            variables=TEMPLATE_VARIABLES.get(template_type, []),
            is_active=True,
        ))
        created += 1

    await db.commit()
    print(f"✅ Email templates initialized ({created} added)")
    return created


async def init_db():
    await create_tables()
    async with AsyncSessionLocal() as db:
        await init_email_templates(db)


if __name__ == "__main__":
    asyncio.run(init_db())

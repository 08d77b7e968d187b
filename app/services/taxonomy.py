import logging
from typing import Dict, List

from sqlalchemy.orm import Session

from app.models import CaseType

logger = logging.getLogger(__name__)

# Seed data for the case_types table. Once seeded, the table is the only
# source consulted for category/type validation.
DEFAULT_CASE_TYPES: Dict[str, List[str]] = {
    "civil": [
        "نزاعات التعويض",
        "نزاعات العقود",
        "الاستحقاق وإلغاء الهبة",
        "المسؤولية المدنية",
        "تسجيل الممتلكات",
        "نزاعات ملكية الممتلكات",
        "تقسيم الممتلكات",
        "الاستملاك للمنفعة العامة",
    ],
    "criminal": [
        "الاعتداءات الجنحية",
        "السرقة، الاحتيال، خيانة الأمانة",
        "المخالفات المرورية الخطيرة",
        "القتل العمد أو الإهمال",
        "الاغتصاب والاعتداء غير اللائق",
        "الاختلاس، الرشوة، سوء الاستخدام",
        "تشكيل عصابة إجرامية",
        "المخالفات المرورية البسيطة",
        "المخالفات البيئية والصحية",
    ],
    "commercial": [
        "نزاعات الشركات",
        "تأسيس الشركات",
        "تصفية الشركات",
        "نزاعات العقود التجارية",
        "نزاعات التوزيع والوكالة",
        "الإفلاس والتسوية القضائية",
    ],
    "administrative": [
        "الطعون الإدارية",
        "المسؤولية الإدارية",
        "نزاعات العقود العامة",
    ],
    "family": [
        "الزواج والتوثيق",
        "الطلاق",
        "النفقة والحضانة",
        "إثبات النسب",
        "الميراث والوصايا",
        "تعدد الزوجات",
        "الكفالة",
    ],
    "labor": [
        "الفصل التعسفي",
        "مطالبات التعويض",
        "نزاعات الأجور والإجازات",
        "الإضرابات",
        "التفاوض الجماعي",
        "نزاعات الاتفاقيات الجماعية",
    ],
}


def seed_case_types(db: Session, force: bool = False) -> int:
    """Populate case_types from DEFAULT_CASE_TYPES.

    Only runs on an empty table unless ``force`` is set, in which case
    missing categories are added and existing ones left untouched.
    Returns the number of categories inserted.
    """
    if not force and db.query(CaseType).count() > 0:
        return 0

    existing = {name for (name,) in db.query(CaseType.name).all()}
    inserted = 0
    for name, sub_types in DEFAULT_CASE_TYPES.items():
        if name in existing:
            continue
        db.add(CaseType(name=name, sub_types=[{"name": sub} for sub in sub_types]))
        inserted += 1
    db.commit()
    if inserted:
        logger.info(f"Seeded {inserted} case types")
    return inserted


def case_type_map(db: Session) -> Dict[str, List[str]]:
    return {
        case_type.name: [sub.get("name") for sub in (case_type.sub_types or [])]
        for case_type in db.query(CaseType).order_by(CaseType.name).all()
    }


def is_valid_category(db: Session, category: str, case_type: str) -> bool:
    row = db.query(CaseType).filter(CaseType.name == category).first()
    if not row:
        return False
    return any(sub.get("name") == case_type for sub in (row.sub_types or []))

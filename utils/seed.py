from models import db
from models.user import Role as RoleRow
from security.rbac import Role

def seed_roles():
    existing = {r.name for r in RoleRow.query.all()}
    for role in Role:
        if role.name not in existing:
            db.session.add(RoleRow(name=role.name))
    db.session.commit()

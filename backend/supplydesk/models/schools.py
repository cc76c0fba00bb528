from __future__ import annotations

from ..extensions import db
from supplydesk.money import money_json
from supplydesk.time_utils import to_utc_z


class School(db.Model):
    """
    Partner school.

    OWNERSHIP: created_by is the owning admin. Invoices and commissions are
    scoped through the school they reference, so the set of schools an admin
    owns determines which sales they can see.

    commission_rate is copied onto every invoice and commission at creation
    time; changing it later never rewrites history.
    """
    __tablename__ = "schools"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_schools_code"),
        db.CheckConstraint("commission_rate >= 0 AND commission_rate <= 100", name="ck_schools_commission_rate"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(32), nullable=False, index=True)

    address_street = db.Column(db.String(255), nullable=True)
    address_city = db.Column(db.String(128), nullable=True)
    address_state = db.Column(db.String(128), nullable=True)
    address_pincode = db.Column(db.String(16), nullable=True)

    contact_phone = db.Column(db.String(32), nullable=True)
    contact_email = db.Column(db.String(255), nullable=True)

    principal_name = db.Column(db.String(255), nullable=True)

    commission_rate = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_by = db.Column(db.Integer, db.ForeignKey("admins.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<School id={self.id} code={self.code!r}>"

    def to_summary(self) -> dict:
        return {"id": self.id, "name": self.name, "code": self.code}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "address_street": self.address_street,
            "address_city": self.address_city,
            "address_state": self.address_state,
            "address_pincode": self.address_pincode,
            "contact_phone": self.contact_phone,
            "contact_email": self.contact_email,
            "principal_name": self.principal_name,
            "commission_rate": money_json(self.commission_rate),
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Student(db.Model):
    __tablename__ = "students"
    __table_args__ = (
        db.UniqueConstraint("roll_number", name="uq_students_roll_number"),
        db.Index("ix_students_school_class", "school_id", "class_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    roll_number = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False, index=True)
    school_id = db.Column(db.Integer, db.ForeignKey("schools.id"), nullable=False, index=True)
    class_name = db.Column(db.String(32), nullable=False)
    section = db.Column(db.String(16), nullable=True)

    father_name = db.Column(db.String(255), nullable=True)
    mother_name = db.Column(db.String(255), nullable=True)

    contact_phone = db.Column(db.String(32), nullable=True)
    contact_email = db.Column(db.String(255), nullable=True)

    address_street = db.Column(db.String(255), nullable=True)
    address_city = db.Column(db.String(128), nullable=True)
    address_state = db.Column(db.String(128), nullable=True)
    address_pincode = db.Column(db.String(16), nullable=True)

    date_of_birth = db.Column(db.DateTime(timezone=True), nullable=True)
    admission_date = db.Column(db.DateTime(timezone=True), nullable=True, server_default=db.func.now())

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_by = db.Column(db.Integer, db.ForeignKey("admins.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    school = db.relationship("School", backref=db.backref("students", lazy=True))

    def __repr__(self) -> str:
        return f"<Student id={self.id} roll_number={self.roll_number!r}>"

    def to_summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "roll_number": self.roll_number,
            "class_name": self.class_name,
            "section": self.section,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "roll_number": self.roll_number,
            "name": self.name,
            "school_id": self.school_id,
            "school": self.school.to_summary() if self.school else None,
            "class_name": self.class_name,
            "section": self.section,
            "father_name": self.father_name,
            "mother_name": self.mother_name,
            "contact_phone": self.contact_phone,
            "contact_email": self.contact_email,
            "address_street": self.address_street,
            "address_city": self.address_city,
            "address_state": self.address_state,
            "address_pincode": self.address_pincode,
            "date_of_birth": to_utc_z(self.date_of_birth),
            "admission_date": to_utc_z(self.admission_date),
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }

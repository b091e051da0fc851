"""initial schema

Revision ID: 0001_initial
Revises: 
Create Date: 2026-10-19 10:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column(
            "role",
            sa.Enum("dentist", "reception", "superadmin", name="role_enum"),
            nullable=False,
            server_default="reception",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("email"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "patients",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("nome", sa.String(length=200), nullable=False),
        sa.Column("data_nascimento", sa.Date(), nullable=True),
        sa.Column("telefone", sa.String(length=50), nullable=True),
        sa.Column("endereco", sa.Text(), nullable=True),
        sa.Column("nome_responsavel", sa.String(length=200), nullable=True),
        sa.Column("cpf", sa.String(length=14), nullable=True),
        sa.Column("observacoes", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("rascunho", "enviado", "assinado", name="patient_form_status"),
            nullable=False,
            server_default="rascunho",
        ),
        sa.Column("assinatura_base64", sa.Text(), nullable=True),
        sa.Column("assinatura_timestamp", sa.DateTime(timezone=True), nullable=True),
        sa.Column("assinatura_dentista", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_patients_data_nascimento", "patients", ["data_nascimento"])
    op.create_index("ix_patients_deleted_at", "patients", ["deleted_at"])

    op.create_table(
        "health_histories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.Integer(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("queixa_principal", sa.Text(), nullable=True),
        sa.Column("tipo_parto", sa.String(length=20), nullable=True),
        sa.Column("aleitamento", sa.String(length=20), nullable=True),
        sa.Column("problemas_gestacao", sa.Text(), nullable=True),
        sa.Column("alergias", sa.Text(), nullable=True),
        sa.Column("tratamento_medico", sa.Text(), nullable=True),
        sa.Column("uso_medicamentos", sa.Text(), nullable=True),
        sa.Column("presenca_doenca", sa.Text(), nullable=True),
        sa.Column("idade_primeiro_dente", sa.String(length=50), nullable=True),
        sa.Column("anestesia_odontologica", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("frequencia_escovacao", sa.String(length=100), nullable=True),
        sa.Column("creme_dental", sa.String(length=100), nullable=True),
        sa.Column("contem_fluor", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("uso_fio_dental", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("quem_realiza_escovacao", sa.String(length=100), nullable=True),
        sa.Column("uso_mamadeira", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("refeicoes_diarias", sa.String(length=50), nullable=True),
        sa.Column("fonte_acucar", sa.Text(), nullable=True),
        sa.Column("habito_succao", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("roer_unhas", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("dormir_boca_aberta", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("vacinacao_dia", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("problemas_cardiacos", sa.Text(), nullable=True),
        sa.Column("problemas_renais", sa.Text(), nullable=True),
        sa.Column("problemas_gastricos", sa.Text(), nullable=True),
        sa.Column("problemas_respiratorios", sa.Text(), nullable=True),
        sa.Column("alteracao_coagulacao", sa.Text(), nullable=True),
        sa.Column("internacoes_recentes", sa.Text(), nullable=True),
        sa.Column("peso_atual", sa.String(length=20), nullable=True),
        sa.Column("condicoes", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("patient_id"),
    )

    op.create_table(
        "treatments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.Integer(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("plano_tratamento", sa.Text(), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("patient_id"),
    )

    op.create_table(
        "treatment_records",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "patient_id",
            sa.Integer(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("data_realizacao", sa.Date(), nullable=False),
        sa.Column("descricao_procedimento", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_treatment_records_patient_id", "treatment_records", ["patient_id"])

    op.create_table(
        "reminders",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "patient_id",
            sa.Integer(),
            sa.ForeignKey("patients.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "type",
            sa.Enum("return", "birthday", name="reminder_type"),
            nullable=False,
            server_default="return",
        ),
        sa.Column("target_date", sa.Date(), nullable=False),
        sa.Column("notify_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("message_template", sa.Text(), nullable=True),
        sa.Column("sent", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_reminders_patient_id", "reminders", ["patient_id"])
    op.create_index("ix_reminders_notify_at", "reminders", ["notify_at"])

    op.create_table(
        "manual_notifications",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("titulo", sa.String(length=200), nullable=False),
        sa.Column("mensagem", sa.Text(), nullable=False),
        sa.Column("notify_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("telefone", sa.String(length=50), nullable=True),
        sa.Column("sent", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_manual_notifications_notify_at", "manual_notifications", ["notify_at"])

    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("titulo", sa.String(length=200), nullable=False),
        sa.Column("descricao", sa.Text(), nullable=True),
        sa.Column("data_hora_inicio", sa.DateTime(timezone=True), nullable=False),
        sa.Column("data_hora_fim", sa.DateTime(timezone=True), nullable=False),
        sa.Column("patient_id", sa.Integer(), sa.ForeignKey("patients.id"), nullable=True),
        sa.Column("cor", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )
    op.create_index("ix_appointments_data_hora_inicio", "appointments", ["data_hora_inicio"])

    op.create_table(
        "site_settings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("meta_title", sa.String(length=200), nullable=True),
        sa.Column("meta_description", sa.String(length=500), nullable=True),
        sa.Column("about_text", sa.Text(), nullable=True),
        sa.Column("services_text", sa.Text(), nullable=True),
        sa.Column("convenios_text", sa.Text(), nullable=True),
        sa.Column("logo_url", sa.String(length=500), nullable=True),
        sa.Column("primary_color", sa.String(length=20), nullable=True),
        sa.Column("secondary_color", sa.String(length=20), nullable=True),
        sa.Column("accent_color", sa.String(length=20), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("actor_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("actor_email", sa.String(length=320), nullable=True),
        sa.Column("action", sa.String(length=32), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=64), nullable=False),
        sa.Column("patient_id", sa.Integer(), sa.ForeignKey("patients.id"), nullable=True),
        sa.Column("request_id", sa.String(length=120), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
    )
    op.create_index("ix_audit_logs_patient_id", "audit_logs", ["patient_id"])


def downgrade() -> None:
    op.drop_index("ix_audit_logs_patient_id", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_table("site_settings")
    op.drop_index("ix_appointments_data_hora_inicio", table_name="appointments")
    op.drop_table("appointments")
    op.drop_index("ix_manual_notifications_notify_at", table_name="manual_notifications")
    op.drop_table("manual_notifications")
    op.drop_index("ix_reminders_notify_at", table_name="reminders")
    op.drop_index("ix_reminders_patient_id", table_name="reminders")
    op.drop_table("reminders")
    op.drop_index("ix_treatment_records_patient_id", table_name="treatment_records")
    op.drop_table("treatment_records")
    op.drop_table("treatments")
    op.drop_table("health_histories")
    op.drop_index("ix_patients_deleted_at", table_name="patients")
    op.drop_index("ix_patients_data_nascimento", table_name="patients")
    op.drop_table("patients")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS patient_form_status")
    op.execute("DROP TYPE IF EXISTS reminder_type")
    op.execute("DROP TYPE IF EXISTS role_enum")

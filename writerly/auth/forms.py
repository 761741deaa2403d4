from flask_wtf import FlaskForm
from sqlalchemy import func
from wtforms import PasswordField, StringField, SubmitField
from wtforms.validators import Email, EqualTo, InputRequired, Length, Regexp, ValidationError

from ..models import User


def _strip(value):
    return value.strip() if isinstance(value, str) else value


class RegistrationForm(FlaskForm):
    pen_name = StringField(
        "Pen name",
        filters=[_strip],
        validators=[
            InputRequired(),
            Length(min=2, max=80),
            Regexp(
                r"^[\w .'-]+$",
                message="Pen names may use letters, numbers, spaces, apostrophes, dots and hyphens.",
            ),
        ],
    )
    email = StringField("Email", filters=[_strip], validators=[InputRequired(), Email(), Length(max=255)])
    password = PasswordField("Password", validators=[InputRequired(), Length(min=8, max=128)])
    confirm_password = PasswordField(
        "Confirm password",
        validators=[InputRequired(), EqualTo("password", message="Passwords must match.")],
    )
    submit = SubmitField("Start writing")

    def validate_pen_name(self, field: StringField) -> None:
        taken = User.query.filter(func.lower(User.pen_name) == field.data.lower()).first()
        if taken:
            raise ValidationError("Another writer already publishes under that pen name.")

    def validate_email(self, field: StringField) -> None:
        if User.query.filter_by(email=field.data.lower()).first():
            raise ValidationError("A writer with that email is already registered.")


class LoginForm(FlaskForm):
    email = StringField("Email", filters=[_strip], validators=[InputRequired(), Email(), Length(max=255)])
    password = PasswordField("Password", validators=[InputRequired()])
    submit = SubmitField("Sign in")

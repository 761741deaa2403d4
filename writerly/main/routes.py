from flask import flash, redirect, render_template, url_for
from flask_login import current_user, login_required

from ..books.forms import BookForm
from ..extensions import db
from ..models import Book
from ..services.progress import award_achievements_safely
from ..services.stats import collect_user_stats
from ..storage import WritingStorage
from . import bp


@bp.route("/")
def index():
    if current_user.is_authenticated:
        return redirect(url_for("main.dashboard"))
    return render_template("main/landing.html")


@bp.route("/dashboard", methods=["GET", "POST"])
@login_required
def dashboard():
    form = BookForm()
    if form.validate_on_submit():
        book = Book(
            title=form.title.data.strip(),
            description=(form.description.data or "").strip() or None,
            owner_id=current_user.id,
        )
        db.session.add(book)
        db.session.commit()
        for entry in award_achievements_safely(current_user.id):
            flash(f'Achievement unlocked: "{entry.achievement.name}"', "success")
        return redirect(url_for("books.detail", book_id=book.id))

    storage = WritingStorage()
    books = (
        Book.query.filter_by(owner_id=current_user.id)
        .order_by(Book.updated_at.desc())
        .all()
    )
    stats = collect_user_stats(current_user.id, storage=storage)
    earned = storage.get_user_achievements(current_user.id)
    return render_template(
        "main/dashboard.html",
        books=books,
        form=form,
        stats=stats,
        earned=earned,
    )

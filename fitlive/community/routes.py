from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Query
from sqlalchemy.orm import Session

from fitlive.db.session import get_db
from fitlive.auth.models import User
from fitlive.community.models import Article, Moment, MomentLike, MomentComment, MomentReport
from fitlive.core.deps import get_current_user, get_admin, is_admin
from fitlive.core.logging import get_logger

router = APIRouter(tags=["community"])

logger = get_logger(__name__, "COMMUNITY")

ARTICLE_PENDING = "pending"
ARTICLE_APPROVED = "approve"
ARTICLE_DECLINED = "decline"
ARTICLE_STATUSES = (ARTICLE_PENDING, ARTICLE_APPROVED, ARTICLE_DECLINED)


def _author(user: Optional[User]) -> dict:
    return {
        "user_id": user.id if user else None,
        "username": user.username if user else "Unknown User",
        "profile_picture": (user.profile_picture if user else None) or "",
    }


def _ts(value) -> Optional[str]:
    return value.isoformat() if value else None


# ======================================================
# ARTICLES
# ======================================================
def _article_dict(article: Article) -> dict:
    return {
        "id": article.id,
        "title": article.title,
        "content": article.content,
        "image_base64": article.image_base64,
        "approval_status": article.approval_status,
        "created_at": _ts(article.created_at),
        "author": _author(article.user),
    }


@router.get("/articles")
def list_articles(db: Session = Depends(get_db)):
    articles = (
        db.query(Article)
        .filter(Article.approval_status == ARTICLE_APPROVED)
        .order_by(Article.created_at.desc(), Article.id.desc())
        .all()
    )
    return {"articles": [_article_dict(a) for a in articles]}


@router.get("/articles/{article_id}")
def get_article(
    article_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    article = db.query(Article).filter(Article.id == article_id).first()
    # Unapproved articles are visible to their author and admins only
    if not article or (
        article.approval_status != ARTICLE_APPROVED
        and article.user_id != user.id
        and not is_admin(user)
    ):
        raise HTTPException(status_code=404, detail="Article not found")
    return _article_dict(article)


@router.post("/articles")
def submit_article(
    title: str = Form(...),
    content: str = Form(...),
    image_base64: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not title.strip() or not content.strip():
        raise HTTPException(status_code=400, detail="Title and content are required")

    article = Article(
        user_id=user.id,
        title=title.strip(),
        content=content.strip(),
        image_base64=image_base64 or None,
        approval_status=ARTICLE_PENDING,
    )
    db.add(article)
    db.commit()
    db.refresh(article)

    logger.info(f"user={user.id} submitted article={article.id}")
    return {"message": "Article submitted for review", "article": _article_dict(article)}


@router.get("/admin/articles")
def admin_list_articles(
    status: str = Query(ARTICLE_PENDING),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    if status not in ARTICLE_STATUSES:
        raise HTTPException(status_code=400, detail=f"status must be one of {', '.join(ARTICLE_STATUSES)}")
    articles = (
        db.query(Article)
        .filter(Article.approval_status == status)
        .order_by(Article.created_at.asc(), Article.id.asc())
        .all()
    )
    return {"articles": [_article_dict(a) for a in articles]}


@router.post("/admin/articles/{article_id}")
def review_article(
    article_id: int,
    decision: str = Form(...),
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    if decision not in (ARTICLE_APPROVED, ARTICLE_DECLINED):
        raise HTTPException(status_code=400, detail="decision must be 'approve' or 'decline'")

    article = db.query(Article).filter(Article.id == article_id).first()
    if not article:
        raise HTTPException(status_code=404, detail="Article not found")

    article.approval_status = decision
    db.commit()

    logger.info(f"admin={admin.id} {decision} article={article_id}")
    return {"message": f"Article {decision}d", "approval_status": article.approval_status}


# ======================================================
# MOMENTS
# ======================================================
def _get_moment(db: Session, moment_id: int) -> Moment:
    moment = db.query(Moment).filter(Moment.id == moment_id).first()
    if not moment:
        raise HTTPException(status_code=404, detail="Moment not found")
    return moment


def _moment_dict(moment: Moment, viewer: User) -> dict:
    return {
        "id": moment.id,
        "content": moment.content,
        "image_base64": moment.image_base64,
        "created_at": _ts(moment.created_at),
        "author": _author(moment.user),
        "like_count": len(moment.likes),
        "comment_count": len(moment.comments),
        "liked": any(like.user_id == viewer.id for like in moment.likes),
    }


def _comment_dict(comment: MomentComment) -> dict:
    return {
        "id": comment.id,
        "content": comment.content,
        "created_at": _ts(comment.created_at),
        "author": _author(comment.user),
    }


@router.get("/moments")
def list_moments(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    moments = db.query(Moment).order_by(Moment.created_at.desc(), Moment.id.desc()).all()
    return {"moments": [_moment_dict(m, user) for m in moments]}


@router.post("/moments")
def create_moment(
    content: str = Form(""),
    image_base64: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not content.strip() and not image_base64:
        raise HTTPException(status_code=400, detail="A moment needs text or an image")

    moment = Moment(user_id=user.id, content=content.strip(), image_base64=image_base64 or None)
    db.add(moment)
    db.commit()
    db.refresh(moment)

    logger.info(f"user={user.id} posted moment={moment.id}")
    return _moment_dict(moment, user)


@router.get("/moments/{moment_id}")
def get_moment(
    moment_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    moment = _get_moment(db, moment_id)
    return {
        **_moment_dict(moment, user),
        "comments": [_comment_dict(c) for c in moment.comments],
    }


@router.post("/moments/{moment_id}/like")
def toggle_like(
    moment_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    moment = _get_moment(db, moment_id)
    existing = db.query(MomentLike).filter(
        MomentLike.moment_id == moment.id,
        MomentLike.user_id == user.id,
    ).first()

    if existing:
        moment.likes.remove(existing)
        liked = False
    else:
        moment.likes.append(MomentLike(user_id=user.id))
        liked = True
    db.commit()
    db.refresh(moment)

    return {"liked": liked, "like_count": len(moment.likes)}


@router.post("/moments/{moment_id}/comments")
def add_comment(
    moment_id: int,
    content: str = Form(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    moment = _get_moment(db, moment_id)
    if not content.strip():
        raise HTTPException(status_code=400, detail="Comment cannot be empty")

    comment = MomentComment(moment_id=moment.id, user_id=user.id, content=content.strip())
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return _comment_dict(comment)


@router.post("/moments/{moment_id}/report")
def report_moment(
    moment_id: int,
    reason: str = Form(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    moment = _get_moment(db, moment_id)
    if not reason.strip():
        raise HTTPException(status_code=400, detail="Please give a reason for the report")

    report = MomentReport(moment_id=moment.id, reporter_id=user.id, reason=reason.strip())
    db.add(report)
    db.commit()
    db.refresh(report)

    logger.info(f"user={user.id} reported moment={moment.id} report={report.id}")
    return {"message": "Report submitted", "report_id": report.id}


# ======================================================
# ADMIN: REPORTS
# ======================================================
@router.get("/admin/reports")
def list_reports(
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    reports = db.query(MomentReport).order_by(MomentReport.created_at.asc(), MomentReport.id.asc()).all()
    return {
        "reports": [
            {
                "id": r.id,
                "moment_id": r.moment_id,
                "reason": r.reason,
                "created_at": _ts(r.created_at),
                "reporter": _author(r.reporter),
                "moment_content": r.moment.content if r.moment else None,
            }
            for r in reports
        ]
    }


@router.delete("/admin/reports/{report_id}")
def dismiss_report(
    report_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    report = db.query(MomentReport).filter(MomentReport.id == report_id).first()
    if not report:
        raise HTTPException(status_code=404, detail="Report not found")
    db.delete(report)
    db.commit()
    logger.info(f"admin={admin.id} dismissed report={report_id}")
    return {"message": "Report dismissed"}


@router.delete("/admin/moments/{moment_id}")
def delete_moment(
    moment_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(get_admin),
):
    moment = _get_moment(db, moment_id)
    # Likes, comments and reports go with it
    db.delete(moment)
    db.commit()
    logger.info(f"admin={admin.id} deleted moment={moment_id}")
    return {"message": "Moment deleted"}

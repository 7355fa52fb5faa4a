import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.core.cache import get_cached_listing, invalidate_listing, set_cached_listing
from app.models.content import BlogPost, Testimonial, VideoSubmission
from app.services.analytics_service import AnalyticsService
from app.utils.formatting import kebab_case, parse_tag_list

logger = logging.getLogger(__name__)

VIDEO_TYPES = ('reel', 'testimonial', 'promo')
SUBMISSION_STATUSES = ('pending', 'approved', 'rejected')


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def post_to_dict(post: BlogPost, include_content: bool = True) -> dict:
    result = {
        'id': post.id,
        'slug': post.slug,
        'title': post.title,
        'excerpt': post.excerpt,
        'author': post.author,
        'cover_image': post.cover_image,
        'tags': post.tags or [],
        'published': bool(post.published),
        'published_at': _iso(post.published_at),
        'created_at': _iso(post.created_at),
    }
    if include_content:
        result['content'] = post.content
    return result


def testimonial_to_dict(testimonial: Testimonial) -> dict:
    return {
        'id': testimonial.id,
        'name': testimonial.name,
        'role': testimonial.role,
        'company': testimonial.company,
        'quote': testimonial.quote,
        'rating': testimonial.rating,
        'avatar': testimonial.avatar,
        'featured': bool(testimonial.featured),
        'created_at': _iso(testimonial.created_at),
    }


def submission_to_dict(submission: VideoSubmission) -> dict:
    return {
        'id': submission.id,
        'user_id': submission.user_id,
        'name': submission.name,
        'email': submission.email,
        'contact_number': submission.contact_number,
        'business_name': submission.business_name,
        'title': submission.title,
        'description': submission.description,
        'video_url': submission.video_url,
        'video_type': submission.video_type,
        'status': submission.status,
        'created_at': _iso(submission.created_at),
    }


class ContentService:
    """Blog posts, testimonials and video submissions"""

    def __init__(self):
        self.analytics = AnalyticsService()
        self.logger = logging.getLogger(__name__)

    # Blog

    def list_posts(self, db: Session, published_only: bool = True) -> list[dict]:
        self.logger.info(f"list_posts: Entry - published_only: {published_only}")

        cache_params = {'published_only': published_only}
        cached = get_cached_listing('posts', cache_params)
        if cached is not None:
            return cached

        try:
            query = db.query(BlogPost)
            if published_only:
                query = query.filter(BlogPost.published == True)
            posts = query.order_by(BlogPost.published_at.desc(), BlogPost.created_at.desc()).all()
            result = [post_to_dict(p, include_content=False) for p in posts]

            set_cached_listing('posts', cache_params, result)
            self.logger.info(f"list_posts: Success - count: {len(result)}")
            return result
        except Exception as e:
            self.analytics.log_failure(action='list_posts', error=str(e))
            self.logger.error(f"list_posts: Failure - {e}")
            raise

    def get_post_by_slug(self, db: Session, slug: str, published_only: bool = True) -> dict:
        query = db.query(BlogPost).filter(BlogPost.slug == slug)
        if published_only:
            query = query.filter(BlogPost.published == True)
        post = query.first()
        if not post:
            raise ValueError(f"Post not found: {slug}")
        return post_to_dict(post)

    def save_post(self, db: Session, data: dict) -> dict:
        """Insert or update a post; the slug defaults to the kebab-cased title"""
        post_id = data.get('id')
        self.logger.info(f"save_post: Entry - id: {post_id}")

        try:
            title = (data.get('title') or '').strip()
            if not title:
                raise ValueError("Post title is required")
            slug = kebab_case(data.get('slug') or title)
            if not slug:
                raise ValueError("Post slug is required")

            clash = db.query(BlogPost).filter(BlogPost.slug == slug).first()
            if clash and clash.id != post_id:
                raise ValueError(f"Slug already in use: {slug}")

            post = db.query(BlogPost).filter(BlogPost.id == post_id).first() if post_id else None
            if post_id and not post:
                raise ValueError(f"Post not found: {post_id}")
            if not post:
                post = BlogPost(id=str(uuid.uuid4()))
                db.add(post)

            was_published = bool(post.published)
            post.slug = slug
            post.title = title
            post.excerpt = data.get('excerpt')
            post.content = data.get('content') or ''
            post.author = data.get('author')
            post.cover_image = data.get('cover_image')
            post.tags = parse_tag_list(data.get('tags'))
            post.published = bool(data.get('published', False))
            if post.published and not was_published:
                post.published_at = datetime.utcnow()
            post.updated_at = datetime.utcnow()

            db.commit()
            db.refresh(post)
            invalidate_listing('posts')

            self.logger.info(f"save_post: Success - {post.id}")
            return post_to_dict(post)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='save_post', error=str(e))
            self.logger.error(f"save_post: Failure - {e}")
            raise

    def delete_post(self, db: Session, post_id: str) -> bool:
        self.logger.info(f"delete_post: Entry - {post_id}")

        try:
            post = db.query(BlogPost).filter(BlogPost.id == post_id).first()
            if not post:
                raise ValueError(f"Post not found: {post_id}")
            db.delete(post)
            db.commit()
            invalidate_listing('posts')

            self.logger.info(f"delete_post: Success - {post_id}")
            return True
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='delete_post', error=str(e))
            self.logger.error(f"delete_post: Failure - {e}")
            raise

    # Testimonials

    def list_testimonials(self, db: Session, featured: Optional[bool] = None) -> list[dict]:
        cache_params = {'featured': featured}
        cached = get_cached_listing('testimonials', cache_params)
        if cached is not None:
            return cached

        query = db.query(Testimonial)
        if featured is not None:
            query = query.filter(Testimonial.featured == featured)
        result = [testimonial_to_dict(t) for t in query.order_by(Testimonial.created_at.desc()).all()]

        set_cached_listing('testimonials', cache_params, result)
        return result

    def save_testimonial(self, db: Session, data: dict) -> dict:
        testimonial_id = data.get('id')
        self.logger.info(f"save_testimonial: Entry - id: {testimonial_id}")

        try:
            if not (data.get('name') or '').strip() or not (data.get('quote') or '').strip():
                raise ValueError("Testimonial name and quote are required")
            rating = data.get('rating')
            if rating is not None and not 1 <= int(rating) <= 5:
                raise ValueError("Rating must be between 1 and 5")

            testimonial = db.query(Testimonial).filter(Testimonial.id == testimonial_id).first() if testimonial_id else None
            if testimonial_id and not testimonial:
                raise ValueError(f"Testimonial not found: {testimonial_id}")
            if not testimonial:
                testimonial = Testimonial(id=str(uuid.uuid4()))
                db.add(testimonial)

            for field in ('name', 'role', 'company', 'quote', 'avatar'):
                setattr(testimonial, field, data.get(field))
            testimonial.rating = int(rating) if rating is not None else None
            testimonial.featured = bool(data.get('featured', False))

            db.commit()
            db.refresh(testimonial)
            invalidate_listing('testimonials')

            self.logger.info(f"save_testimonial: Success - {testimonial.id}")
            return testimonial_to_dict(testimonial)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='save_testimonial', error=str(e))
            self.logger.error(f"save_testimonial: Failure - {e}")
            raise

    def delete_testimonial(self, db: Session, testimonial_id: str) -> bool:
        self.logger.info(f"delete_testimonial: Entry - {testimonial_id}")

        try:
            testimonial = db.query(Testimonial).filter(Testimonial.id == testimonial_id).first()
            if not testimonial:
                raise ValueError(f"Testimonial not found: {testimonial_id}")
            db.delete(testimonial)
            db.commit()
            invalidate_listing('testimonials')
            return True
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='delete_testimonial', error=str(e))
            self.logger.error(f"delete_testimonial: Failure - {e}")
            raise

    # Video submissions

    def submit_video(self, db: Session, data: dict, user_id: Optional[str] = None) -> dict:
        self.logger.info(f"submit_video: Entry - user: {user_id}")

        try:
            for field in ('name', 'email', 'title', 'description', 'video_url'):
                if not (data.get(field) or '').strip():
                    raise ValueError(f"{field} is required")
            video_type = data.get('video_type') or 'reel'
            if video_type not in VIDEO_TYPES:
                raise ValueError(f"Invalid video type: {video_type}")

            submission = VideoSubmission(
                id=str(uuid.uuid4()),
                user_id=user_id,
                name=data['name'].strip(),
                email=data['email'].strip(),
                contact_number=data.get('contact_number'),
                business_name=data.get('business_name'),
                title=data['title'].strip(),
                description=data['description'].strip(),
                video_url=data['video_url'].strip(),
                video_type=video_type,
                status='pending'
            )
            db.add(submission)
            db.commit()
            db.refresh(submission)

            self.analytics.log_success(action='submit_video', user_id=user_id, parameters={'video_type': video_type})
            self.logger.info(f"submit_video: Success - {submission.id}")
            return submission_to_dict(submission)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='submit_video', error=str(e), user_id=user_id)
            self.logger.error(f"submit_video: Failure - {e}")
            raise

    def list_submissions(self, db: Session, status: Optional[str] = None) -> list[dict]:
        query = db.query(VideoSubmission)
        if status:
            if status not in SUBMISSION_STATUSES:
                raise ValueError(f"Invalid status: {status}")
            query = query.filter(VideoSubmission.status == status)
        return [submission_to_dict(s) for s in query.order_by(VideoSubmission.created_at.desc()).all()]

    def review_submission(self, db: Session, submission_id: str, approved: bool) -> dict:
        self.logger.info(f"review_submission: Entry - {submission_id}, approved: {approved}")

        try:
            submission = db.query(VideoSubmission).filter(VideoSubmission.id == submission_id).first()
            if not submission:
                raise ValueError(f"Submission not found: {submission_id}")
            submission.status = 'approved' if approved else 'rejected'
            db.commit()
            db.refresh(submission)

            self.logger.info(f"review_submission: Success - {submission_id}")
            return submission_to_dict(submission)
        except Exception as e:
            db.rollback()
            self.analytics.log_failure(action='review_submission', error=str(e))
            self.logger.error(f"review_submission: Failure - {e}")
            raise

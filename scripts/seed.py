"""Populate the database with demo users, posts, comments, replies and likes."""
import asyncio
import argparse
import random
import time
from datetime import datetime, timezone, timedelta

from social_api.database import engine, async_session, Base
from social_api.models import Comment, Like, Post, User

TOPICS = ["python", "fastapi", "postgresql", "sqlalchemy", "docker", "testing",
          "async", "design", "performance", "security"]


async def seed(small: bool = False):
    num_users = 5 if small else 50
    num_posts = 20 if small else 2000
    max_comments = 3 if small else 6

    print(f"Seeding: {num_users} users, {num_posts} posts")
    start = time.perf_counter()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session() as session:
        users = []
        for i in range(num_users):
            user = User(
                email=f"user_{i:04d}@example.com",
                username=f"user_{i:04d}",
                name=f"User {i}",
                bio=f"Writes about {random.choice(TOPICS)}.",
                avatar=f"https://api.dicebear.com/7.x/avataaars/svg?seed=user_{i:04d}",
            )
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created {len(users)} users")

        posts = []
        for i in range(num_posts):
            topic = random.choice(TOPICS)
            post = Post(
                title=f"Post {i}: notes on {topic}",
                content=f"Some thoughts about {topic}. " * 10,
                published=random.random() > 0.2,  # 80% published
                created_at=datetime.now(timezone.utc) - timedelta(days=random.randint(0, 365)),
                author_id=random.choice(users).id,
            )
            session.add(post)
            posts.append(post)
        await session.flush()
        print(f"  Created {len(posts)} posts")

        total_comments = total_likes = 0
        for post in posts:
            for _ in range(random.randint(0, max_comments)):
                comment = Comment(
                    content=f"Interesting take on post {post.id}.",
                    author_id=random.choice(users).id,
                    post_id=post.id,
                )
                session.add(comment)
                await session.flush()
                total_comments += 1
                if random.random() > 0.5:
                    session.add(Comment(
                        content="Agreed!",
                        author_id=random.choice(users).id,
                        post_id=post.id,
                        parent_id=comment.id,
                    ))
                    total_comments += 1

            for liker in random.sample(users, k=random.randint(0, len(users) // 2)):
                session.add(Like(user_id=liker.id, post_id=post.id))
                total_likes += 1
        await session.commit()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users}")
    print(f"  Posts: {num_posts}")
    print(f"  Comments: {total_comments}")
    print(f"  Likes: {total_likes}")


def main():
    parser = argparse.ArgumentParser(description="Seed the social API database")
    parser.add_argument("--small", action="store_true", help="Use a small dataset (20 posts)")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small))


if __name__ == "__main__":
    main()

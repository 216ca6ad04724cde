"""
Tests for course endpoints.
"""
from uuid import uuid4

import pytest


class TestCreateCourseEndpoint:
    """POST /courses."""

    def test_anonymous_create(self, client):
        """Anonymous creation succeeds without attribution."""
        response = client.post(
            "/courses",
            json={"name": "Intro", "price": "0.00", "categoryTag": ["prakerja"]},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["id"]
        assert data["createdBy"] is None
        assert data["price"] == "0.00"
        assert data["categoryTag"] == ["prakerja"]
        assert data["createdAt"] == data["updatedAt"]

    def test_authenticated_create_sets_creator(self, client, student_user, auth_headers):
        """Authenticated callers are recorded as creator."""
        response = client.post(
            "/courses",
            json={"name": "Intro", "price": "0.00", "categoryTag": ["prakerja"]},
            headers=auth_headers,
        )

        assert response.status_code == 201
        assert response.json()["createdBy"] == str(student_user.id)

    def test_invalid_token_is_treated_as_anonymous(self, client):
        response = client.post(
            "/courses",
            json={"name": "Intro", "categoryTag": ["spl"]},
            headers={"Authorization": "Bearer not-a-token"},
        )

        assert response.status_code == 201
        assert response.json()["createdBy"] is None
        assert response.json()["price"] == "0.00"

    def test_unknown_tag_is_business_rule_failure(self, client):
        response = client.post(
            "/courses",
            json={"name": "Intro", "price": "10.00", "categoryTag": ["foo"]},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "VALIDATION_FAILED"
        assert body["data"]["field"] == "categoryTag"
        assert "foo" in body["data"]["reason"]

    def test_free_course_high_rating(self, client):
        response = client.post(
            "/courses",
            json={"name": "Intro", "price": "0.00", "categoryTag": ["spl"], "rating": "4.5"},
        )

        assert response.status_code == 400
        assert response.json()["data"] == {
            "field": "rating",
            "reason": "Free courses cannot have ratings above 3.0",
        }

    @pytest.mark.parametrize(
        "payload, field",
        [
            ({"price": "1.00", "categoryTag": ["spl"]}, "name"),
            ({"name": "X", "price": "1.234", "categoryTag": ["spl"]}, "price"),
            ({"name": "X", "price": "-1", "categoryTag": ["spl"]}, "price"),
            ({"name": "X", "categoryTag": ["spl"], "rating": "5.5"}, "rating"),
            ({"name": "X", "categoryTag": ["spl"], "thumbnail": "nope"}, "thumbnail"),
        ],
    )
    def test_malformed_input_rejected_before_handler(self, client, payload, field):
        response = client.post("/courses", json=payload)

        assert response.status_code == 422
        body = response.json()
        assert body["code"] == "VALIDATION_FAILED"
        assert body["data"]["field"] == field
        assert body["errors"]


class TestReadCourseEndpoints:
    """GET /courses and GET /course/{id}."""

    def test_round_trip(self, client):
        created = client.post(
            "/courses",
            json={"name": "X", "price": "100.00", "categoryTag": ["spl"]},
        ).json()

        response = client.get(f"/course/{created['id']}")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "X"
        assert data["price"] == "100.00"
        assert data["categoryTag"] == ["spl"]

    def test_get_missing_course(self, client):
        missing = uuid4()
        response = client.get(f"/course/{missing}")

        assert response.status_code == 404
        assert response.json() == {
            "code": "NOT_FOUND",
            "message": "Course not found",
            "data": {"id": str(missing)},
        }

    def test_get_with_malformed_id(self, client):
        response = client.get("/course/not-a-uuid")
        assert response.status_code == 422

    def test_list_with_defaults(self, client, paid_course, free_course):
        response = client.get("/courses")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["limit"] == 50
        assert data["offset"] == 0
        assert {c["name"] for c in data["courses"]} == {"Data Analysis", "Intro to Git"}

    def test_list_filters_by_tag(self, client, paid_course, free_course):
        response = client.get("/courses", params={"categoryTag": "spl"})

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["courses"][0]["id"] == str(free_course.id)

    def test_list_with_invalid_tag(self, client):
        response = client.get("/courses", params={"categoryTag": "foo"})

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_CATEGORY_TAGS"
        assert response.json()["data"]["tags"] == ["foo"]

    @pytest.mark.parametrize("limit", [0, 101])
    def test_list_limit_out_of_bounds(self, client, limit):
        response = client.get("/courses", params={"limit": limit})

        assert response.status_code == 422
        assert response.json()["data"]["field"] == "limit"

    def test_list_limit_upper_bound_accepted(self, client):
        response = client.get("/courses", params={"limit": 100, "offset": 0})

        assert response.status_code == 200
        assert response.json()["limit"] == 100

    def test_negative_offset_rejected(self, client):
        response = client.get("/courses", params={"offset": -1})
        assert response.status_code == 422


class TestUpdateCourseEndpoint:
    """PUT /course/{id}."""

    def test_partial_update_refreshes_updated_at(self, client):
        created = client.post(
            "/courses",
            json={"name": "X", "price": "100.00", "categoryTag": ["spl"]},
        ).json()

        response = client.put(f"/course/{created['id']}", json={"name": "Y"})

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Y"
        assert data["price"] == "100.00"
        assert data["categoryTag"] == ["spl"]
        assert data["updatedAt"] > data["createdAt"]

    def test_update_missing_course(self, client):
        response = client.put(f"/course/{uuid4()}", json={"name": "Y"})
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_update_rejects_null_name(self, client, paid_course):
        response = client.put(f"/course/{paid_course.id}", json={"name": None})
        assert response.status_code == 422

    def test_update_cannot_make_rated_course_free(self, client, paid_course):
        response = client.put(f"/course/{paid_course.id}", json={"price": "0.00"})

        assert response.status_code == 400
        assert response.json()["data"]["field"] == "rating"


class TestDeleteCourseEndpoint:
    """DELETE /course/{id}."""

    def test_delete_missing_twice(self, client):
        missing = uuid4()
        first = client.delete(f"/course/{missing}")
        second = client.delete(f"/course/{missing}")

        assert first.status_code == second.status_code == 404
        assert first.json()["code"] == second.json()["code"] == "NOT_FOUND"

    def test_delete_guard_then_success(self, client, paid_course, enrollment, auth_headers):
        blocked = client.delete(f"/course/{paid_course.id}")
        assert blocked.status_code == 409
        assert blocked.json()["code"] == "CANNOT_DELETE"
        assert blocked.json()["data"] == {
            "id": str(paid_course.id),
            "reason": "Course has 1 active enrollments",
        }

        unenrolled = client.delete(f"/enrollments/{enrollment.id}", headers=auth_headers)
        assert unenrolled.status_code == 200

        response = client.delete(f"/course/{paid_course.id}")
        assert response.status_code == 200
        assert response.json() == {"success": True, "id": str(paid_course.id)}


class TestInsightEndpoints:
    """GET /courses/popular and GET /courses/statistics."""

    def test_popular(self, client, paid_course, free_course, enrollment):
        response = client.get("/courses/popular")

        assert response.status_code == 200
        data = response.json()
        assert data[0]["course"]["id"] == str(paid_course.id)
        assert data[0]["enrollmentCount"] == 1
        assert data[1]["enrollmentCount"] == 0

    def test_statistics(self, client, paid_course, free_course):
        response = client.get("/courses/statistics")

        assert response.status_code == 200
        assert response.json() == {
            "totalCourses": 2,
            "freeCourses": 1,
            "paidCourses": 1,
            "prakerjaCourses": 1,
            "splCourses": 1,
            "averageRating": "3.8",
        }

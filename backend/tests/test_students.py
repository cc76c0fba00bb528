# Overview: Pytest coverage for student records and bulk upload.

import io

from openpyxl import Workbook

from supplydesk.models import Student
from supplydesk.services.student_service import StudentService


def _csv_upload(text: str, filename: str = "students.csv"):
    return (io.BytesIO(text.encode("utf-8")), filename)


class TestStudentRecords:
    def test_create_student_in_owned_school(self, client, headers_a, school_a):
        response = client.post('/api/students', json={
            'roll_number': "R2001",
            'name': "Kabir Singh",
            'school_id': school_a.id,
            'class_name': "7",
        }, headers=headers_a)
        assert response.status_code == 201
        assert response.json['data']['school']['code'] == "SMHS001"

    def test_create_student_in_foreign_school(self, client, headers_b, school_a):
        response = client.post('/api/students', json={
            'roll_number': "R2001",
            'name': "Kabir Singh",
            'school_id': school_a.id,
            'class_name': "7",
        }, headers=headers_b)
        assert response.status_code == 403

    def test_move_student_to_foreign_school(self, client, db_session, headers_a, headers_b, school_a, student_a):
        foreign = client.post('/api/schools', json={'name': "Delhi Public School", 'code': "DPS002"}, headers=headers_b)
        assert foreign.status_code == 201

        response = client.put(
            f"/api/students/{student_a.id}",
            json={'school_id': foreign.json['data']['id']},
            headers=headers_a,
        )
        assert response.status_code == 403

        db_session.expire_all()
        assert db_session.get(Student, student_a.id).school_id == school_a.id

    def test_duplicate_roll_number(self, client, headers_a, student_a):
        response = client.post('/api/students', json={
            'roll_number': student_a.roll_number,
            'name': "Someone Else",
            'school_id': student_a.school_id,
            'class_name': "5",
        }, headers=headers_a)
        assert response.status_code == 400
        assert response.json['message'] == "Student with this roll number already exists"

    def test_list_filters_by_class(self, client, headers_a, student_a):
        assert len(client.get('/api/students?class_name=5', headers=headers_a).json['data']) == 1
        assert client.get('/api/students?class_name=6', headers=headers_a).json['data'] == []


class TestBulkUpload:
    def test_csv_upload_reports_bad_rows(self, client, db_session, headers_a, school_a, student_a):
        text = (
            "rollNumber,name,class,section,fatherName\n"
            "R3001,Meera Iyer,6,B,Ravi Iyer\n"
            ",No Roll,6,B,\n"
            "R1001,Duplicate Roll,6,A,\n"
            "R3002,Dev Patel,8,,\n"
        )
        response = client.post(
            '/api/students/bulk-upload',
            data={'schoolId': str(school_a.id), 'file': _csv_upload(text)},
            headers=headers_a,
            content_type='multipart/form-data',
        )
        assert response.status_code == 200
        data = response.json['data']
        assert data['inserted'] == 2
        assert data['total_rows'] == 4
        assert [error['row'] for error in data['errors']] == [3, 4]
        assert data['errors'][0]['message'] == "Missing required fields: rollNumber"
        assert response.json['message'] == "2 students uploaded successfully"

        meera = db_session.query(Student).filter_by(roll_number="R3001").one()
        assert meera.school_id == school_a.id
        assert meera.father_name == "Ravi Iyer"

    def test_insert_conflict_reports_generic_message(self, client, headers_a, school_a, student_a, monkeypatch):
        # Skip the lookup so the unique constraint is what rejects the row
        monkeypatch.setattr(StudentService, "_duplicate", lambda self, patch, exclude_id=None: None)
        text = (
            "rollNumber,name,class\n"
            "R1001,Duplicate Roll,6\n"
            "R3003,Asha Nair,7\n"
        )
        response = client.post(
            '/api/students/bulk-upload',
            data={'schoolId': str(school_a.id), 'file': _csv_upload(text)},
            headers=headers_a,
            content_type='multipart/form-data',
        )
        assert response.status_code == 200
        data = response.json['data']
        assert data['inserted'] == 1
        assert data['errors'] == [{'row': 2, 'message': "Student conflicts with an existing record"}]

    def test_xlsx_upload(self, client, db_session, headers_a, school_a):
        wb = Workbook()
        ws = wb.active
        ws.append(["Roll Number", "Name", "Class", "Section"])
        ws.append([4001, "Nisha Rao", 9, "C"])
        buf = io.BytesIO()
        wb.save(buf)
        buf.seek(0)

        response = client.post(
            '/api/students/bulk-upload',
            data={'schoolId': str(school_a.id), 'file': (buf, "students.xlsx")},
            headers=headers_a,
            content_type='multipart/form-data',
        )
        assert response.status_code == 200
        assert response.json['data']['inserted'] == 1

        nisha = db_session.query(Student).filter_by(roll_number="4001").one()
        assert nisha.class_name == "9"

    def test_school_id_required(self, client, headers_a):
        response = client.post(
            '/api/students/bulk-upload',
            data={'file': _csv_upload("rollNumber,name,class\n1,A,1\n")},
            headers=headers_a,
            content_type='multipart/form-data',
        )
        assert response.status_code == 400
        assert response.json['message'] == "schoolId is required"

    def test_foreign_school_rejected(self, client, headers_b, school_a):
        response = client.post(
            '/api/students/bulk-upload',
            data={'schoolId': str(school_a.id), 'file': _csv_upload("rollNumber,name,class\n1,A,1\n")},
            headers=headers_b,
            content_type='multipart/form-data',
        )
        assert response.status_code == 403

    def test_unsupported_file_type(self, client, headers_a, school_a):
        response = client.post(
            '/api/students/bulk-upload',
            data={'schoolId': str(school_a.id), 'file': (io.BytesIO(b"hello"), "students.txt")},
            headers=headers_a,
            content_type='multipart/form-data',
        )
        assert response.status_code == 400

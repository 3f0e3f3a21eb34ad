"""
Скрипт проверки и оценки API на живом сервере

Использование:
    python evaluate_api.py --endpoint http://localhost:8000 --images test_images/

Что делает:
    - отправляет каждое изображение из каталога на /api/sessions
    - при успешном анализе задает ассистенту один вопрос
    - измеряет время обработки и долю успешных запросов
    - сохраняет отчет в evaluation_report.md
"""

import argparse
import os
import statistics
import time
from typing import Any, Dict, List

import requests

IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.webp'}
DEFAULT_QUESTION = "С чего лучше начать уборку?"


class APIEvaluator:
    def __init__(self, endpoint: str, question: str = DEFAULT_QUESTION):
        self.endpoint = endpoint.rstrip('/')
        self.sessions_url = f"{self.endpoint}/api/sessions"
        self.question = question

    def ask_assistant(self, session_id: str) -> Dict[str, Any]:
        start_time = time.time()
        try:
            response = requests.post(
                f"{self.sessions_url}/{session_id}/messages",
                json={"text": self.question},
                timeout=60,
            )
            elapsed_time = time.time() - start_time
            if response.status_code != 200:
                return {'success': False, 'time': elapsed_time, 'error': f"HTTP {response.status_code}: {response.text}"}
            return {'success': True, 'time': elapsed_time, 'reply': response.json()['reply']['text']}
        except requests.RequestException as e:
            return {'success': False, 'time': time.time() - start_time, 'error': str(e)}

    def reset_session(self, session_id: str):
        try:
            requests.delete(f"{self.sessions_url}/{session_id}", timeout=10)
        except requests.RequestException as e:
            print(f"Failed to reset session {session_id}: {e}")

    def evaluate_image(self, image_path: str) -> Dict[str, Any]:
        """Анализ одного изображения и один вопрос в чат"""
        print(f"\nEvaluating: {image_path}")
        name = os.path.basename(image_path)

        with open(image_path, 'rb') as f:
            files = {'file': (name, f, 'image/jpeg')}

            start_time = time.time()
            try:
                response = requests.post(self.sessions_url, files=files, timeout=120)
            except requests.RequestException as e:
                return {'image': name, 'success': False, 'processing_time': time.time() - start_time, 'error': str(e)}
            elapsed_time = time.time() - start_time

        if response.status_code != 201:
            return {
                'image': name,
                'success': False,
                'processing_time': elapsed_time,
                'error': f"HTTP {response.status_code}: {response.text}",
            }

        data = response.json()
        chat = self.ask_assistant(data['sessionId'])
        self.reset_session(data['sessionId'])

        analysis = data['analysis']
        dashboard = data['dashboard']
        return {
            'image': name,
            'success': True,
            'processing_time': elapsed_time,
            'room_type': analysis['roomType'],
            'clutter_level': analysis['clutterLevel'],
            'clutter_tier': dashboard['clutterTier'],
            'action_items': len(analysis['actionItems']),
            'chat': chat,
            'error': None,
        }

    def evaluate_directory(self, images_dir: str) -> List[Dict[str, Any]]:
        image_files = sorted(
            os.path.join(images_dir, f)
            for f in os.listdir(images_dir)
            if os.path.splitext(f)[1].lower() in IMAGE_EXTENSIONS
        )
        print(f"Found {len(image_files)} images in {images_dir}")

        results = []
        for image_path in image_files:
            results.append(self.evaluate_image(image_path))
            time.sleep(1)  # не перегружаем сервер
        return results

    def generate_report(self, results: List[Dict[str, Any]], output_file: str = "evaluation_report.md"):
        total = len(results)
        succeeded = [r for r in results if r['success']]
        analysis_times = [r['processing_time'] for r in succeeded]
        chat_results = [r['chat'] for r in succeeded]
        chat_ok = [c for c in chat_results if c['success']]

        with open(output_file, 'w', encoding='utf-8') as f:
            f.write("# Отчет о проверке TidyAI API\n\n")

            f.write("## 1. Сводка\n\n")
            f.write(f"- Дата: {time.strftime('%Y-%m-%d %H:%M:%S')}\n")
            f.write(f"- Эндпоинт: {self.sessions_url}\n")
            f.write(f"- Изображений: {total}\n")
            if total:
                f.write(f"- Успешных анализов: {len(succeeded)} ({len(succeeded) / total * 100:.1f}%)\n")
            if chat_results:
                f.write(f"- Успешных ответов чата: {len(chat_ok)}/{len(chat_results)}\n")
            f.write("\n")

            if analysis_times:
                f.write("## 2. Время анализа\n\n")
                f.write(f"- Среднее: {statistics.mean(analysis_times):.2f} с\n")
                f.write(f"- Минимум: {min(analysis_times):.2f} с\n")
                f.write(f"- Максимум: {max(analysis_times):.2f} с\n")
                f.write(f"- Медиана: {statistics.median(analysis_times):.2f} с\n\n")

            f.write("## 3. Результаты по изображениям\n\n")
            f.write("| Изображение | Тип комнаты | Захламленность | Уровень | Задач | Чат |\n")
            f.write("|-------------|-------------|----------------|---------|-------|-----|\n")
            for r in results:
                if r['success']:
                    chat_status = "ok" if r['chat']['success'] else "ошибка"
                    f.write(
                        f"| {r['image']} | {r['room_type']} | {r['clutter_level']} | "
                        f"{r['clutter_tier']} | {r['action_items']} | {chat_status} |\n"
                    )
                else:
                    f.write(f"| {r['image']} | - | - | - | - | {r['error']} |\n")

        print(f"\nReport saved to {output_file}")


def main():
    parser = argparse.ArgumentParser(description='Проверка TidyAI API на наборе фотографий')
    parser.add_argument('--endpoint', default='http://localhost:8000', help='URL сервера')
    parser.add_argument('--images', default='test_images', help='Каталог с фотографиями')
    parser.add_argument('--question', default=DEFAULT_QUESTION, help='Вопрос для чата')
    parser.add_argument('--output', default='evaluation_report.md', help='Файл отчета')

    args = parser.parse_args()

    if not os.path.exists(args.images):
        print(f"Error: images directory '{args.images}' not found.")
        return

    evaluator = APIEvaluator(args.endpoint, args.question)
    results = evaluator.evaluate_directory(args.images)
    evaluator.generate_report(results, args.output)

    successful = sum(1 for r in results if r['success'])
    print(f"\nEvaluated {len(results)} images: {successful} succeeded, {len(results) - successful} failed")


if __name__ == "__main__":
    main()
